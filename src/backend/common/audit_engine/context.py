from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Any, Optional, Union

from lxml import etree
from lxml.html import HtmlElement

from .errors import ContextResolutionError
from .models import TestEnvironment


def default_user_agent() -> str:
    lxml_version = ".".join(str(part) for part in etree.LXML_VERSION[:3])
    return f"Python/{platform.python_version()} lxml/{lxml_version}"


@dataclass(frozen=True)
class DocumentTarget:
    document: etree._ElementTree


@dataclass(frozen=True)
class ElementTarget:
    element: HtmlElement


@dataclass(frozen=True)
class PageTarget:
    """A document plus what a browser window would know about it."""

    document: etree._ElementTree
    url: str = ""
    user_agent: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


RunTarget = Union[DocumentTarget, ElementTarget, PageTarget]


@dataclass(frozen=True)
class RunContext:
    document: etree._ElementTree
    document_root: HtmlElement
    context_root: HtmlElement
    url: str
    environment: TestEnvironment


def as_run_target(obj: Any) -> RunTarget:
    """Map raw lxml objects (or anything exposing `.document`) onto a run target."""
    if isinstance(obj, (DocumentTarget, ElementTarget, PageTarget)):
        return obj
    if isinstance(obj, etree._ElementTree):
        return DocumentTarget(obj)
    if isinstance(obj, etree._Element):
        return ElementTarget(obj)
    document = getattr(obj, "document", None)
    if isinstance(document, etree._ElementTree):
        return PageTarget(
            document=document,
            url=str(getattr(obj, "url", "") or ""),
            user_agent=getattr(obj, "user_agent", None),
            width=getattr(obj, "width", None),
            height=getattr(obj, "height", None),
        )
    raise ContextResolutionError(f"Cannot run against {type(obj).__name__}: expected a document, element or page")


def resolve_context(target: Any) -> RunContext:
    target = as_run_target(target)

    if isinstance(target, ElementTarget):
        document = target.element.getroottree()
        context_root = target.element
        page: Optional[PageTarget] = None
    else:
        document = target.document
        context_root = document.getroot()
        page = target if isinstance(target, PageTarget) else None

    document_root = document.getroot()
    if document_root is None or context_root is None:
        raise ContextResolutionError("Run target has no root element")

    url = (page.url if page else "") or document.docinfo.URL or ""
    environment = TestEnvironment(
        user_agent=(page.user_agent if page else None) or default_user_agent(),
        window_width=page.width if page else None,
        window_height=page.height if page else None,
    )
    return RunContext(
        document=document,
        document_root=document_root,
        context_root=context_root,
        url=url,
        environment=environment,
    )
