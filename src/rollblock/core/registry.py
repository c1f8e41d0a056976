# The registry of environment config
ENVIRONMENT_CONFIG_REGISTRY = {}

# The registry of environment class
ENVIRONMENT_REGISTRY = {}

def register_environment_config(kind: str):
    def deco(cls):
        ENVIRONMENT_CONFIG_REGISTRY[kind] = cls
        return cls
    return deco

def register_environment(kind: str):
    def deco(cls):
        ENVIRONMENT_REGISTRY[kind] = cls
        return cls
    return deco

def get_environment_class(kind: str):
    """Look up a registered environment, importing the built-in ones first."""
    import rollblock.environment  # noqa: F401  (triggers registration)

    if kind not in ENVIRONMENT_REGISTRY:
        known = ", ".join(sorted(ENVIRONMENT_REGISTRY)) or "none"
        raise KeyError(f"Unknown environment type '{kind}' (registered: {known})")
    return ENVIRONMENT_REGISTRY[kind]
