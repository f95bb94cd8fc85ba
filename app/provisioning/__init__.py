"""
Provisioning app for reseller panel integrations.

This app provides:
- ProviderIntegration model (panel credentials per tenant)
- Provisioning gateways that renew a subscriber on a panel
- CreditSyncService and a Celery task refreshing panel credit balances
"""
