"""
Domains - Business logic, free of transport concerns.

- templates: field vocabulary and schema compilation
- extraction: provider selection, invocation and result validation
- batch: sequential multi-document runs and exports
"""
