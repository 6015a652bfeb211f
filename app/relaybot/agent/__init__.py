"""Generation backends and the personas that frame them."""
