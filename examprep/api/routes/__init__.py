from examprep.api.routes import access, catalog, health, onboarding, organization, payment

__all__ = ["access", "catalog", "health", "onboarding", "organization", "payment"]
