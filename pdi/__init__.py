"""Pre-Delivery Inspection engine."""
