from litmarkup._types import Component
from litmarkup._types import PositionalElement
from litmarkup._types import PositionalNode
from litmarkup._types import RenderOps
from litmarkup.cache import DEFAULT_TEMPLATE_CACHE
from litmarkup.cache import TemplateCache
from litmarkup.components import register_component
from litmarkup.components import unregister_component
from litmarkup.environments import MarkupEnvironment
from litmarkup.environments import markup_to_text
from litmarkup.environments import markup_to_text_with
from litmarkup.exceptions import AsyncRenderRequired
from litmarkup.exceptions import AwaitableAttributeValue
from litmarkup.exceptions import LitmarkupException
from litmarkup.exceptions import MarkupSyntaxError
from litmarkup.exceptions import SubstitutionIndexError
from litmarkup.exceptions import UnresolvedComponent
from litmarkup.parser import ParseConfig
from litmarkup.parser import parse
from litmarkup.parser import parse_markup
from litmarkup.renderer import close_pending
from litmarkup.renderer import render
from litmarkup.renderer import render_to_text
from litmarkup.text import TEXT_RENDER_OPS

__all__ = [
    'DEFAULT_TEMPLATE_CACHE',
    'TEXT_RENDER_OPS',
    'AsyncRenderRequired',
    'AwaitableAttributeValue',
    'Component',
    'LitmarkupException',
    'MarkupEnvironment',
    'MarkupSyntaxError',
    'ParseConfig',
    'PositionalElement',
    'PositionalNode',
    'RenderOps',
    'SubstitutionIndexError',
    'TemplateCache',
    'UnresolvedComponent',
    'close_pending',
    'markup_to_text',
    'markup_to_text_with',
    'parse',
    'parse_markup',
    'register_component',
    'render',
    'render_to_text',
    'unregister_component',
]
