"""Domain layer: exceptions shared by every resource."""
