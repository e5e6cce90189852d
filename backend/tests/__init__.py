"""
Test suite for the Poultry Market API.

Test categories:
- Unit tests: policies, templates, validators and transition tables
- API tests: FastAPI app over httpx with in-memory SQLite
- Integration tests: checkout -> payment claim -> approval flows
"""
