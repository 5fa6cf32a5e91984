"""I/O schemas shared by API endpoints and services."""
