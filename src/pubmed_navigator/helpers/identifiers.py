import re

from pubmed_navigator.constants import PMC_PREFIX

_SEPARATORS = re.compile(r"[\s,]+")


def strip_pmc_prefix(pmc_id: str) -> str:
    """'PMC1234567' -> '1234567'; bare ids pass through."""
    pmc_id = pmc_id.strip()
    if pmc_id.upper().startswith(PMC_PREFIX):
        return pmc_id[len(PMC_PREFIX) :]
    return pmc_id


def add_pmc_prefix(pmc_id: str) -> str:
    """'1234567' or 'PMC1234567' -> 'PMC1234567'."""
    return f"{PMC_PREFIX}{strip_pmc_prefix(pmc_id)}"


def parse_pmids(raw: str | list[str]) -> list[str]:
    """Accept a list of PMIDs or a space/comma separated string of them.

    Blank entries are dropped; order and duplicates are kept.
    """
    if isinstance(raw, str):
        candidates = _SEPARATORS.split(raw)
    else:
        candidates = raw
    return [pmid.strip() for pmid in candidates if pmid and pmid.strip()]
