"""Shareholder registration service for class actions."""
