"""
Classify pasted links into the catalog resource they point to.
"""
from dataclasses import dataclass

from yarl import URL

from pairify.catalog.types import ResourceType


@dataclass(frozen=True)
class ResourceLink:
    """A reference to a catalog collection as extracted from a link"""
    #: The type of collection the link points to
    kind: ResourceType
    #: The ID of the collection, taken verbatim from the link
    id: str


def classify(text: str) -> ResourceLink | None:
    """
    Identify the type and ID of the collection a link points to.

    Only the last two path segments of the link are considered,
    which must take the form ``.../{playlist|album}/{id}``.
    The scheme, host, and query of the link are ignored.

    Text which is not an absolute URL, or which does not take this form, is common while the user is
    still typing and so is not treated as an error.

    :param text: The text to classify.
    :return: The :py:class:`ResourceLink` for the text, or None when the text is not a recognised link.
    """
    try:
        url = URL(text.strip())
    except (ValueError, TypeError):
        return None
    if not url.scheme:
        return None

    segments = url.raw_path.split("/")
    if len(segments) < 2:
        return None

    kind_name, id_ = segments[-2], segments[-1]
    kind = next((kind for kind in ResourceType.all() if kind.key == kind_name), None)
    if kind is None or not id_:
        return None

    return ResourceLink(kind=kind, id=id_)
