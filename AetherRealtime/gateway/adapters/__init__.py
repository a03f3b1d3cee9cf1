"""内置适配器 / Built-in adapters."""
