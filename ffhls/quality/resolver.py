# ffhls/quality/resolver.py
"""
Resolve requested quality names against a catalog
"""

from typing import Optional, Sequence, Tuple

from ffhls.quality.catalog import QualityProfile, catalog_names
from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import EmptySelectionError, InvalidRequestError

logger = get_logger('resolver')

DEFAULT_QUALITY_NAMES: Tuple[str, ...] = ('120', '240', '360', '480', '720')


def resolve_qualities(
    catalog: Sequence[QualityProfile],
    requested: Optional[Sequence[str]] = None
) -> Tuple[QualityProfile, ...]:
    """
    Select the profiles to encode for one run

    Args:
        catalog: Validated quality catalog
        requested: Quality names; empty or None selects the default subset

    Returns:
        Matching profiles in catalog order, without duplicates

    Raises:
        InvalidRequestError: If requested is not a list of strings, or a
            name is not in the catalog
        EmptySelectionError: If nothing was selected
    """
    if requested is None or (isinstance(requested, (list, tuple)) and not requested):
        requested = DEFAULT_QUALITY_NAMES

    if not isinstance(requested, (list, tuple)):
        raise InvalidRequestError(
            "Invalid quality list provided. It should be a list of strings."
        )

    if any(not isinstance(name, str) for name in requested):
        raise InvalidRequestError(
            "All elements in the quality list must be strings."
        )

    if not catalog:
        raise EmptySelectionError("Catalog is empty, nothing to convert.")

    valid = catalog_names(catalog)
    for name in requested:
        if name not in valid:
            raise InvalidRequestError(
                f"Invalid quality name: {name}. It does not match any quality "
                f"name. Valid names are {', '.join(valid)}.",
                valid_names=valid
            )

    wanted = set(requested)
    selected = tuple(q for q in catalog if q.name in wanted)

    if not selected:
        raise EmptySelectionError("No valid qualities provided for conversion.")

    logger.debug(f"Resolved qualities: {', '.join(q.name for q in selected)}")
    return selected
