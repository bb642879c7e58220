"""Backend-for-frontend for the flight booking flow."""
