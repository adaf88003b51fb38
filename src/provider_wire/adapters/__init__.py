"""Server interfaces a provider implements to be served over the wire."""
