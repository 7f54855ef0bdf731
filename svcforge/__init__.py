"""svcforge — materialize, validate and deploy Cloudflare Worker services."""

__version__ = "0.1.0"
