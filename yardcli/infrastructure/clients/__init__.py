"""Endpoint clients for the remote pricing services.

Each client wraps a RequestExecutor, validates response shapes and turns
failures into PricingApiError.
"""
