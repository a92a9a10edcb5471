"""Online Boutique storefront frontend."""
