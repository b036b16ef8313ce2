"""Core business logic: the administrative gateway and the Keycloak client layer."""
