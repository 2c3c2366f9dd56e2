"""Spinnaker MCP server package.

Modules:
- config: YAML + environment configuration
- gate: Gate HTTP client (one method per backend operation)
- auth: Google identity-token auth for Gate
- registry: static tool catalog and argument coercion
- app: capability/identity reporting and tool dispatch
- server: MCP SDK wiring, stdio and streamable HTTP transports
"""
