"""Static monograph links attached to every interaction record.

These are not lookups: they point the reader at the reference sources
(MedlinePlus, DailyMed, NCCIH) whether or not an interaction was found.
"""

from __future__ import annotations

from urllib.parse import urlencode

from medmap.models import SourceRef

MEDLINEPLUS_CONNECT_URL = "https://connect.medlineplus.gov/service"
# HL7 OID identifying RxNorm as the code system of mainSearchCriteria
RXNORM_CODE_SYSTEM = "2.16.840.1.113883.6.88"

RXNAV_HOME_URL = "https://rxnav.nlm.nih.gov/"
DAILYMED_URL = "https://dailymed.nlm.nih.gov/dailymed/"
NCCIH_HERBS_URL = "https://www.nccih.nih.gov/health/herbsataglance"


def medlineplus_connect(rxcui: str) -> SourceRef:
    query = urlencode(
        {
            "mainSearchCriteria.v.cs": RXNORM_CODE_SYSTEM,
            "mainSearchCriteria.v.c": rxcui,
            "informationRecipient.languageCode.c": "en",
        }
    )
    return SourceRef(name="MedlinePlus Connect", url=f"{MEDLINEPLUS_CONNECT_URL}?{query}")


def rxnorm(retrieved: str | None = None) -> SourceRef:
    return SourceRef(name="RxNorm", url=RXNAV_HOME_URL, retrieved=retrieved)


def static_references(rxcui: str) -> list[SourceRef]:
    """MedlinePlus Connect for the item, then DailyMed and NCCIH."""
    return [
        medlineplus_connect(rxcui),
        SourceRef(name="OpenFDA/DailyMed", url=DAILYMED_URL),
        SourceRef(name="NCCIH Herbs", url=NCCIH_HERBS_URL),
    ]
