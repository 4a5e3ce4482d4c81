"""Tools wrapping the Amadeus for Developers self-service APIs."""
