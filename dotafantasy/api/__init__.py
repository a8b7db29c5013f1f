"""HTTP routes for the Dota Fantasy API."""
