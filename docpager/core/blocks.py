import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

logger = logging.getLogger(__name__)


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    QUOTE = "quote"
    CODE = "code"
    RULE = "rule"
    CONTAINER = "container"


BLOCK_TAGS = {
    'h1': BlockKind.HEADING,
    'h2': BlockKind.HEADING,
    'h3': BlockKind.HEADING,
    'h4': BlockKind.HEADING,
    'h5': BlockKind.HEADING,
    'h6': BlockKind.HEADING,
    'p': BlockKind.PARAGRAPH,
    'div': BlockKind.CONTAINER,
    'blockquote': BlockKind.QUOTE,
    'pre': BlockKind.CODE,
    'ul': BlockKind.LIST,
    'ol': BlockKind.LIST,
    'dl': BlockKind.LIST,
    'table': BlockKind.TABLE,
    'hr': BlockKind.RULE,
}

# Elements that give a block visible content even without text
VISIBLE_EMPTY_TAGS = ['img', 'hr', 'table', 'svg', 'canvas', 'input', 'iframe']

# Structural elements that may be looked through to paginate their children
WRAPPER_TAGS = {'div', 'section', 'article', 'main', 'header', 'footer', 'aside'}

# Phrasing content: never a pagination unit on its own
INLINE_TAGS = {
    'a', 'abbr', 'b', 'bdi', 'bdo', 'br', 'cite', 'code', 'data', 'dfn', 'em',
    'i', 'img', 'input', 'kbd', 'label', 'mark', 'q', 's', 'samp', 'small',
    'span', 'strong', 'sub', 'sup', 'time', 'u', 'var', 'wbr',
}

CONTENT_CONTAINER_SELECTORS = [
    '#documentContent',
    '.markdown-content',
    '.markdown-body',
    '.content-area',
]

SCREEN_ONLY_SELECTORS = [
    'script', 'button', 'nav', 'noscript',
    '.top-nav', '.toc-sidebar', '.edit-actions',
    '.btn', '.no-print',
]


@dataclass(frozen=True)
class ContentNode:
    """
    One page-able block: never split across pages.
    """
    index: int
    tag: str
    kind: BlockKind
    markup: str
    level: Optional[int] = None

    @property
    def label(self) -> str:
        return f"#{self.index} <{self.tag}>"


def prepare_markup(html: str) -> str:
    """
    Normalize incoming HTML before pagination.

    Picks the content container when the HTML is a full page (editor
    preview, exported view) and strips screen-only elements.
    """
    soup = BeautifulSoup(html or "", 'html.parser')

    main_container = None
    for selector in CONTENT_CONTAINER_SELECTORS:
        main_container = soup.select_one(selector)
        if main_container:
            break

    root = main_container or soup.body or soup

    for selector in SCREEN_ONLY_SELECTORS:
        for el in root.select(selector):
            el.decompose()

    # Stylesheets and comments never contribute a block of their own
    for el in root.find_all(['style', 'link', 'meta', 'title']):
        el.decompose()
    for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    return root.decode_contents()


def _is_content_container(tag: Tag) -> bool:
    classes = set(tag.get('class') or [])
    for selector in CONTENT_CONTAINER_SELECTORS:
        if selector.startswith('#') and tag.get('id') == selector[1:]:
            return True
        if selector.startswith('.') and selector[1:] in classes:
            return True
    return False


def _is_visually_empty(tag: Tag) -> bool:
    if tag.name in VISIBLE_EMPTY_TAGS:
        return False
    if tag.get_text(strip=True):
        return False
    return tag.find(VISIBLE_EMPTY_TAGS) is None


def _is_transparent(tag: Tag) -> bool:
    """
    A wrapper with no look of its own whose visible children are all
    block-level. Anything else is paginated whole so no content or
    styling is lost.
    """
    if tag.name.lower() not in WRAPPER_TAGS:
        return False
    if (tag.get('style') or tag.get('class')) and not _is_content_container(tag):
        return False

    for child in tag.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            if child.strip():
                return False
            continue
        if not isinstance(child, Tag) or _is_visually_empty(child):
            continue
        if child.name.lower() in INLINE_TAGS:
            return False
    return True


def _walk(parent) -> Iterator[Tag]:
    for child in parent.children:
        if not isinstance(child, Tag):
            if isinstance(child, NavigableString) and not isinstance(child, Comment) and child.strip():
                logger.debug(f"Blocks: skipping stray text outside any block: {child.strip()[:40]!r}")
            continue

        name = child.name.lower()

        if _is_visually_empty(child):
            logger.debug(f"Blocks: skipping empty <{name}>")
            continue

        if _is_transparent(child):
            yield from _walk(child)
            continue

        if name in INLINE_TAGS and child.find(list(BLOCK_TAGS)) is None:
            logger.debug(f"Blocks: skipping inline <{name}> outside any block")
            continue

        # Block tags, plus styled wrappers and other elements (figure, details) as one container
        yield child


def extract_blocks(content) -> List[ContentNode]:
    """
    Walk a content tree and return its page-able blocks in document order.

    `content` may be an HTML string or a parsed BeautifulSoup tree. Blocks
    nested inside an already-yielded block are part of that block.
    """
    if isinstance(content, (BeautifulSoup, Tag)):
        root = content
    else:
        root = BeautifulSoup(content or "", 'html.parser')

    if isinstance(root, BeautifulSoup) and root.body:
        root = root.body

    blocks = []
    for tag in _walk(root):
        name = tag.name.lower()
        kind = BLOCK_TAGS.get(name, BlockKind.CONTAINER)
        level = int(name[1]) if kind is BlockKind.HEADING else None
        blocks.append(ContentNode(
            index=len(blocks),
            tag=name,
            kind=kind,
            markup=str(tag),
            level=level,
        ))

    logger.debug(f"Blocks: extracted {len(blocks)} page-able blocks")
    return blocks
