"""Bill purchase: request models, provider response mapping and the purchase handler."""
