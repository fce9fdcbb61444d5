"""laraindex CLI."""
