"""Cart, checkout and delivery-eligibility core of the storefront client."""
