"""HTTP calculator API."""
