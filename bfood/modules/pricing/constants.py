"""Pricing module constants — tier limits and cache keys."""

# Upper bound on tiers a supplier may configure per product
MAX_PRICE_TIERS = 10

PRICE_TIERS_CACHE_KEY = "product-price-tiers:{product_id}"
PRODUCTS_WITH_TIERS_CACHE_KEY = "products-with-price-tiers"
