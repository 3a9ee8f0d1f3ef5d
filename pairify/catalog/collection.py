"""
Normalise the responses for each type of catalog collection into one uniform :py:class:`Collection`.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from pairify.catalog.exception import CollectionError
from pairify.catalog.types import ResourceType

Track: TypeAlias = dict[str, Any] | None


@dataclass(frozen=True)
class Image:
    """An image associated with a catalog collection"""
    url: str
    height: int | None = None
    width: int | None = None

    @property
    def size(self) -> int | None:
        """The largest dimension of this image, if known"""
        sizes = [value for value in (self.height, self.width) if value is not None]
        return max(sizes) if sizes else None

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> "Image":
        """Create a new :py:class:`Image` from an API image response"""
        return cls(url=response["url"], height=response.get("height"), width=response.get("width"))


@dataclass(frozen=True)
class Collection:
    """
    A playlist or album with a flat, ordered list of its tracks.

    Regardless of the type of the source collection, each track is a track response.
    Album tracks additionally carry the metadata of the album under the ``album`` key.
    """
    #: The type of the collection this was created from
    source_type: ResourceType
    id: str
    name: str
    #: The link to this collection on the catalog's website
    external_url: str | None
    images: tuple[Image, ...] = ()
    #: The tracks of this collection in playback order. Tracks removed from the catalog are None.
    tracks: tuple[Track, ...] = ()
    #: The response for the collection without its tracks
    response: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def image(self) -> Image | None:
        """The primary image for this collection"""
        return self.images[0] if self.images else None

    def __len__(self):
        return len(self.tracks)


def _get_metadata(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow copy the collection ``raw`` response, excluding its tracks"""
    return {key: value for key, value in raw.items() if key != "tracks"}


def normalize(raw: Mapping[str, Any], kind: ResourceType) -> Collection:
    """
    Convert a ``raw`` API response for a collection of the given ``kind`` into a :py:class:`Collection`.

    The order and count of the tracks in the response is always preserved.

    :param raw: The API response for the collection including a ``tracks`` block with its ``items``.
    :param kind: The type of collection the response represents.
    :return: The normalised :py:class:`Collection`.
    :raise CollectionError: When the response does not include a list of tracks or is otherwise malformed.
    """
    tracks_block = raw.get("tracks") if isinstance(raw, Mapping) else None
    items = tracks_block.get("items") if isinstance(tracks_block, Mapping) else None
    if items is None:
        raise CollectionError("Response does not contain any track items", kind=kind, value=_get_id(raw))

    try:
        return _normalize(raw=raw, items=items, kind=kind)
    except (KeyError, TypeError, AttributeError) as ex:
        raise CollectionError(
            f"Malformed response ({ex.__class__.__name__}: {ex})", kind=kind, value=_get_id(raw)
        ) from ex


def _get_id(raw: Any) -> Any:
    return raw.get("id") if isinstance(raw, Mapping) else None


def _normalize(raw: Mapping[str, Any], items: Iterable[Mapping[str, Any] | None], kind: ResourceType) -> Collection:
    metadata = _get_metadata(raw)

    match kind:
        case ResourceType.PLAYLIST:
            tracks = tuple(item.get("track") if item else None for item in items)
        case ResourceType.ALBUM:
            # album track responses do not include the album they belong to
            tracks = tuple({**item, "album": dict(metadata)} for item in items)
        case _:
            raise CollectionError("Unrecognised collection type", kind=kind)

    return Collection(
        source_type=kind,
        id=raw["id"],
        name=raw.get("name", ""),
        external_url=(raw.get("external_urls") or {}).get("spotify"),
        images=tuple(Image.from_response(image) for image in raw.get("images") or ()),
        tracks=tracks,
        response=metadata,
    )
