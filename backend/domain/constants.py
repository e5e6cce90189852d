"""
Domain constants used across services/routers.
"""

# Standalone payment reference numbers: PAY<epoch-ms><hex suffix>
PAYMENT_REFERENCE_PREFIX = "PAY"
PAYMENT_REFERENCE_SUFFIX_BYTES = 2

# Customer-facing order numbers are the last N characters of the order id
ORDER_NUMBER_LENGTH = 8

# Review ratings
MIN_RATING = 1
MAX_RATING = 5

# Largest quantity of one product in a single checkout line (trays, sacks, birds)
MAX_LINE_QUANTITY = 5000
