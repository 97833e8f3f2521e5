"""
Shared utilities for the service token library.

This package aggregates common building blocks consumed by the token
factory, validator and messaging adapters:

- config: Token configuration via pydantic-settings
- logging: Structured logging with message correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Token-specific logic should live in service_tokens; do not import from
service_tokens into shared/.
"""
