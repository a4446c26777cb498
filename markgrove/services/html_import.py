from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from markgrove.services.common import epoch_to_iso, parse_tags, resolve_address
from markgrove.services.records import BookmarkRecord


_HEADINGS = ["h3", "h2", "h1"]


def _tag_name(node) -> str:
    return (node.name or "").lower() if isinstance(node, Tag) else ""


def _find_folder_in_dt(dt: Tag) -> Tag | None:
    for heading in dt.find_all(_HEADINGS):
        if isinstance(heading, Tag) and heading.find_parent("dt") is dt:
            return heading
    return None


def _heading_for_dl(dl: Tag) -> Tag | None:
    # Depending on the parser the folder's <DL> ends up inside its <DT>
    # or right after it as a sibling.
    if _tag_name(dl.parent) == "dt":
        return _find_folder_in_dt(dl.parent)

    sibling = dl.previous_sibling
    while sibling is not None:
        name = _tag_name(sibling)
        # Only <H3> labels a folder here; the export's <H1> title does not.
        if name == "h3":
            return sibling
        if name == "dt":
            return _find_folder_in_dt(sibling)
        if name and name != "p":
            return None
        sibling = sibling.previous_sibling
    return None


def _folder_stub(heading: Tag) -> BookmarkRecord:
    return BookmarkRecord.folder(
        title=heading.get_text(strip=True),
        created=epoch_to_iso(heading.get("add_date")),
        updated=epoch_to_iso(heading.get("last_modified")),
    )


def _ancestor_folders(anchor: Tag) -> list[BookmarkRecord]:
    """Folder stubs enclosing ``anchor``, nearest first."""
    parents: list[BookmarkRecord] = []
    for ancestor in anchor.parents:
        if _tag_name(ancestor) != "dl":
            continue
        heading = _heading_for_dl(ancestor)
        if heading is not None:
            parents.append(_folder_stub(heading))
    return parents


def _description_for(anchor: Tag) -> str:
    dt = anchor.find_parent("dt")
    if dt is None:
        return ""

    candidates = [dd for dd in dt.find_all("dd") if dd.find_parent("dt") is dt]
    sibling = dt.next_sibling
    while sibling is not None:
        name = _tag_name(sibling)
        if name == "dd":
            candidates.append(sibling)
            break
        if name:
            break
        sibling = sibling.next_sibling

    for dd in candidates:
        text = "".join(dd.find_all(string=True, recursive=False)).strip()
        if text:
            return text
    return ""


def _record_for_anchor(
    anchor: Tag, address: str, keep_root_folder: bool
) -> BookmarkRecord:
    parents = _ancestor_folders(anchor)
    if not keep_root_folder:
        # The outermost folder is the export's own wrapper, e.g. "Bookmarks bar".
        parents = parents[:-1]

    icon = anchor.get("icon")
    tags = anchor.get("tags")
    return BookmarkRecord(
        title=anchor.get_text(strip=True),
        address=address,
        parents=parents,
        description=_description_for(anchor),
        tags=parse_tags(tags if isinstance(tags, str) else ""),
        icon=icon.strip() if isinstance(icon, str) else "",
        created=epoch_to_iso(anchor.get("add_date")),
        updated=epoch_to_iso(anchor.get("last_modified")),
    )


def parse_bookmarks_html(
    html: str, *, keep_root_folder: bool = False
) -> list[BookmarkRecord]:
    """Flatten a Netscape bookmark export into leaf records.

    Each record carries its enclosing folders in ``parents``, nearest first.
    Only the first anchor for a given address is kept.
    """
    if not html or not html.strip():
        return []

    soup = BeautifulSoup(html, "lxml")
    seen: set[str] = set()
    records: list[BookmarkRecord] = []
    for anchor in soup.find_all("a"):
        if not isinstance(anchor, Tag):
            continue
        href_value = anchor.get("href")
        href = href_value.strip() if isinstance(href_value, str) else ""
        if not href:
            continue

        address = resolve_address(href)
        if address in seen:
            continue
        seen.add(address)
        records.append(_record_for_anchor(anchor, address, keep_root_folder))
    return records
