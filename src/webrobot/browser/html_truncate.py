"""Bound an HTML fragment to a maximum serialized length, keeping it well formed.

Used to put element snapshots (``outerHTML``) into error messages without
dumping a whole form. Plain slicing would cut tags in half; instead the
fragment is parsed and shrunk one node at a time, always at the innermost
node still being worked on:

* more than one child: drop the last child;
* exactly one element child: descend into it;
* otherwise (empty, or a lone text node): remove the node from its parent
  and climb back up; at the root, drop an attribute, then the text.

Every iteration either removes a node, removes an attribute or descends one
level, so the loop terminates. The truncation point is marked with a
``...`` text node, or a bare ``...`` attribute when only attributes went.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
DEFAULT_MAX_LENGTH = 100


def _true_root(soup: BeautifulSoup) -> Tag:
    """The single top-level element of the fragment, or the soup itself."""
    elements = [c for c in soup.contents if isinstance(c, Tag)]
    texts = [c for c in soup.contents if isinstance(c, NavigableString) and c.strip()]
    if len(elements) == 1 and not texts:
        return elements[0]
    return soup


def truncate_html(html: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Return *html* unchanged if it fits in *max_length*, else a shrunk fragment.

    The result stays parseable markup; it may exceed *max_length* by the
    length of the ellipsis marker and whatever tags remain open around it.

    Args:
        html: The markup to bound, usually an element's ``outerHTML``.
        max_length: Target serialized length.

    Returns:
        The original string, or the truncated and re-serialized fragment.
    """
    if html is None or len(html) <= max_length:
        return html

    soup = BeautifulSoup(html.strip(), "html.parser")
    root = _true_root(soup)
    node: Tag = soup
    content_trimmed = False
    attrs_trimmed = False

    while len(str(soup)) > max_length:
        children = list(node.contents)
        if len(children) > 1:
            children[-1].extract()
            content_trimmed = True
        elif len(children) == 1 and isinstance(children[0], Tag):
            node = children[0]
        elif node is not root:
            parent = node.parent
            node.extract()
            node = parent
            content_trimmed = True
        elif root.attrs:
            del root.attrs[next(iter(root.attrs))]
            attrs_trimmed = True
        elif children:
            children[0].extract()
            content_trimmed = True
        else:
            break

    if content_trimmed:
        node.append(NavigableString(ELLIPSIS))
    elif attrs_trimmed:
        root.attrs[ELLIPSIS] = None

    result = str(soup)
    logger.debug("Truncated HTML from %d to %d chars", len(html), len(result))
    return result
