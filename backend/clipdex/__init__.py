"""ClipDex backend."""
