"""Clients for the Cloud Controller API and the cf CLI."""
