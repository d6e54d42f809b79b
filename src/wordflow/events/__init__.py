"""Mutation events and the side-effect handlers that react to them."""
