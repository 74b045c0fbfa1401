"""Front-end adapters consuming the bridge feeds."""
