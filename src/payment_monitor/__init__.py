"""Stripe payment failure monitor.

Receives Stripe webhooks, enriches failed payments with customer data and
relays them to a Gmail alert and an Airtable "Failed Payments" row.
"""

__version__ = "0.1.0"
