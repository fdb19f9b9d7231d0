from __future__ import annotations

import logging
from typing import List, Optional

from cssselect import SelectorError as CssSelectorError
from lxml import etree
from lxml.html import HtmlElement

from .cancellation import CancelToken
from .errors import ErrorLog, SelectorError

logger = logging.getLogger(__name__)

# Selectors naming a tag that exists once per document.
DOCUMENT_SCOPED_SELECTORS = frozenset({"html", "body"})

WILDCARD_SELECTOR = "*"
# "Every element" is narrowed to the tags that usually carry text.
TEXT_BEARING_SELECTOR = "p, span, div, h1, h2, h3, h4, h5, h6, li, td, th, a, button"


def locate(
    selector: Optional[str],
    context_root: HtmlElement,
    document_root: HtmlElement,
    *,
    rule_id: Optional[str],
    errors: ErrorLog,
    token: Optional[CancelToken] = None,
) -> List[HtmlElement]:
    if not selector or not selector.strip():
        return [context_root]

    selector = selector.strip()
    try:
        if selector in DOCUMENT_SCOPED_SELECTORS:
            matches = document_root.cssselect(selector)
            return matches[:1]

        if selector == WILDCARD_SELECTOR:
            selector = TEXT_BEARING_SELECTOR

        matches = context_root.cssselect(selector)
    except (CssSelectorError, etree.XPathError) as exc:
        errors.capture(SelectorError(f"Invalid selector {selector!r}: {exc}", rule_id=rule_id))
        return []

    found: List[HtmlElement] = []
    for element in matches:
        if token is not None:
            token.raise_if_expired()
        # querySelectorAll semantics: descendants only.
        if element is context_root:
            continue
        found.append(element)
    logger.debug("Selector %r matched %d element(s) for %s", selector, len(found), rule_id)
    return found
