"""
Category-Aware Trust-Source Catalog

Maps a site's free-text category onto a business-type bucket, each with
2-3 trust sources in recommendation order. A SaaS company is steered to
G2/Capterra/Product Hunt; a local business to Yelp/BBB/Trustpilot.

Matching is a case-insensitive substring test against each bucket's
keywords, buckets checked in BUCKET_ORDER; no match -> DEFAULT.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .models import Priority


class BusinessType(Enum):
    SAAS = "saas"
    ECOMMERCE = "ecommerce"
    AGENCY = "agency"
    LOCAL_BUSINESS = "local_business"
    DEFAULT = "default"


@dataclass(frozen=True)
class CatalogSource:
    """A trust source recommended for a business type."""
    domain: str
    name: str
    signup_url: str
    rationale: str
    priority: Priority

    @property
    def slug(self) -> str:
        return self.name.lower().replace(" ", "_")


CATEGORY_KEYWORDS: Dict[BusinessType, Tuple[str, ...]] = {
    BusinessType.SAAS: (
        "saas", "software", "b2b", "crm", "productivity", "devtool",
        "developer", "analytics",
    ),
    BusinessType.ECOMMERCE: (
        "e-commerce", "ecommerce", "retail", "shop", "store", "marketplace",
        "dtc", "d2c", "fashion", "apparel",
    ),
    BusinessType.AGENCY: (
        "agency", "consult", "freelance", "professional services", "studio",
    ),
    BusinessType.LOCAL_BUSINESS: (
        "local", "restaurant", "cafe", "bakery", "plumb", "dental", "dentist",
        "salon", "clinic", "contractor", "gym", "law firm", "real estate",
    ),
}

BUCKET_ORDER: Tuple[BusinessType, ...] = (
    BusinessType.SAAS,
    BusinessType.ECOMMERCE,
    BusinessType.AGENCY,
    BusinessType.LOCAL_BUSINESS,
)

SOURCE_CATALOG: Dict[BusinessType, List[CatalogSource]] = {
    BusinessType.SAAS: [
        CatalogSource(
            "g2.com", "G2", "https://www.g2.com/products/new",
            "G2 is the #1 software review site that AI platforms trust. A verified "
            "G2 profile dramatically increases your chances of being recommended "
            "by ChatGPT, Perplexity, and Google AI.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "capterra.com", "Capterra", "https://www.capterra.com/vendors/sign-up",
            "AI models frequently cite Capterra reviews and rankings when "
            "recommending tools. A Capterra listing builds trust signals that AI relies on.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "producthunt.com", "Product Hunt", "https://www.producthunt.com/posts/new",
            "A Product Hunt launch creates a permanent backlink and social proof "
            "that AI models use when deciding which products to recommend.",
            Priority.HIGH,
        ),
    ],
    BusinessType.ECOMMERCE: [
        CatalogSource(
            "trustpilot.com", "Trustpilot", "https://business.trustpilot.com/signup",
            "Trustpilot ratings are the review signal AI shopping answers quote "
            "most often for online stores.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "sitejabber.com", "Sitejabber", "https://www.sitejabber.com/business",
            "Sitejabber reviews give AI a second independent source confirming "
            "your store is legitimate.",
            Priority.HIGH,
        ),
        CatalogSource(
            "bbb.org", "BBB", "https://www.bbb.org/get-accredited",
            "BBB accreditation is a trust marker AI answers use when asked "
            "whether a store is reliable.",
            Priority.HIGH,
        ),
    ],
    BusinessType.AGENCY: [
        CatalogSource(
            "clutch.co", "Clutch", "https://clutch.co/get-listed",
            "Clutch is the directory AI platforms cite when recommending agencies "
            "and consultancies, ranked by verified client reviews.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "goodfirms.co", "GoodFirms", "https://www.goodfirms.co/get-listed",
            "GoodFirms profiles and category rankings are regularly pulled into "
            "AI answers about service providers.",
            Priority.HIGH,
        ),
        CatalogSource(
            "upcity.com", "UpCity", "https://upcity.com/for-providers",
            "UpCity's vetted provider listings add a third-party recommendation "
            "signal for agency searches.",
            Priority.HIGH,
        ),
    ],
    BusinessType.LOCAL_BUSINESS: [
        CatalogSource(
            "yelp.com", "Yelp", "https://biz.yelp.com/signup",
            "Yelp is the review source AI assistants consult first for local "
            "recommendations.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "bbb.org", "BBB", "https://www.bbb.org/get-accredited",
            "BBB accreditation tells AI your business is established and trustworthy.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "trustpilot.com", "Trustpilot", "https://business.trustpilot.com/signup",
            "Trustpilot reviews add independent customer proof AI can cite.",
            Priority.HIGH,
        ),
    ],
    BusinessType.DEFAULT: [
        CatalogSource(
            "trustpilot.com", "Trustpilot", "https://business.trustpilot.com/signup",
            "Trustpilot reviews are one of the most widely cited trust signals "
            "across AI answer platforms.",
            Priority.CRITICAL,
        ),
        CatalogSource(
            "crunchbase.com", "Crunchbase", "https://www.crunchbase.com/add-new",
            "AI models use Crunchbase to confirm what a company does and who it serves.",
            Priority.HIGH,
        ),
        CatalogSource(
            "producthunt.com", "Product Hunt", "https://www.producthunt.com/posts/new",
            "Product Hunt pages are indexed and cited as social proof for new products.",
            Priority.HIGH,
        ),
    ],
}


def classify_category(category: Optional[str]) -> BusinessType:
    """Bucket a free-text site category ("B2B SaaS", "Local bakery", ...)."""
    if not category:
        return BusinessType.DEFAULT
    lowered = category.lower()
    for business_type in BUCKET_ORDER:
        if any(keyword in lowered for keyword in CATEGORY_KEYWORDS[business_type]):
            return business_type
    return BusinessType.DEFAULT


def get_sources_for_category(category: Optional[str]) -> List[CatalogSource]:
    """Trust sources to pursue for this category, in recommendation order."""
    return SOURCE_CATALOG[classify_category(category)]
