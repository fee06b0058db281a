from ooh_billing.models.company import Company, OrganizationSettings
from ooh_billing.models.client import Client
from ooh_billing.models.media_asset import MediaAsset
from ooh_billing.models.campaign import Campaign
from ooh_billing.models.campaign_asset import CampaignAsset
from ooh_billing.models.campaign_timeline import CampaignTimelineEvent
from ooh_billing.models.invoice import Invoice
from ooh_billing.models.invoice_item_snapshot import InvoiceItemSnapshot

__all__ = [
    "Company",
    "OrganizationSettings",
    "Client",
    "MediaAsset",
    "Campaign",
    "CampaignAsset",
    "CampaignTimelineEvent",
    "Invoice",
    "InvoiceItemSnapshot",
]
