"""FastAPI application for the payment failure monitor."""
