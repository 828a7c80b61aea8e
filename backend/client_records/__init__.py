"""Client records backend: MySQL pool, migrations and clients API."""
