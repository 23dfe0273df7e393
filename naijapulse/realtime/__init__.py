"""Realtime aggregation core: change feed channels and the live views built on them."""
