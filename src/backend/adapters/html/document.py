from __future__ import annotations

from typing import Optional, Union

from lxml import etree
from lxml import html as lxml_html

from common.audit_engine.context import PageTarget


class HtmlDocumentAdapterError(ValueError):
    pass


def parse_html(markup: Union[str, bytes], *, base_url: Optional[str] = None) -> etree._ElementTree:
    """
    Parse already-fetched markup into a document tree the engine can run on.

    Fragments are wrapped by lxml into a full `<html><body>` document, so
    `html`/`body` rules still find their element.
    """
    if not isinstance(markup, (str, bytes)):
        raise HtmlDocumentAdapterError("HTML markup must be str or bytes.")
    if not markup.strip():
        raise HtmlDocumentAdapterError("HTML markup is empty.")

    try:
        root = lxml_html.document_fromstring(markup, base_url=base_url)
    except (etree.ParserError, ValueError) as exc:
        raise HtmlDocumentAdapterError(f"Could not parse HTML: {exc}") from exc
    return root.getroottree()


def load_page(
    markup: Union[str, bytes],
    *,
    url: str = "",
    user_agent: Optional[str] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> PageTarget:
    document = parse_html(markup, base_url=url or None)
    return PageTarget(document=document, url=url, user_agent=user_agent, width=width, height=height)
