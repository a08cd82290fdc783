"""Hypermedia (HAL) REST exposure of repositories."""
