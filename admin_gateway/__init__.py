"""Keycloak admin gateway: a REST façade over the Keycloak admin API."""
