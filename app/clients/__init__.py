"""
Clients app for tenants, subscribers and the client portal.

This app provides:
- Tenant and Client models (the subscription a renewal extends)
- ClientPortalSession and PortalSessionService for portal authorization
- ClientEvent audit log entries written after renewals
- DjangoClientRepository, the fulfillment pipeline's view of a client
- WhatsAppClient for confirmation messages
"""
