import gc
import inspect
import warnings
from unittest.mock import Mock

import pytest

from litmarkup._types import PositionalElement
from litmarkup._types import RenderOps
from litmarkup.exceptions import AwaitableAttributeValue
from litmarkup.exceptions import SubstitutionIndexError
from litmarkup.parser import ParseConfig
from litmarkup.parser import parse
from litmarkup.parser import parse_markup
from litmarkup.renderer import close_pending
from litmarkup.renderer import get_substitution
from litmarkup.renderer import render
from litmarkup.renderer import render_to_text
from litmarkup.renderer import resolve_attributes
from litmarkup.text import TEXT_RENDER_OPS

from litmarkup_testutils import Bold
from litmarkup_testutils import Delayed
from litmarkup_testutils import EventLog
from litmarkup_testutils import Exploding


def _never_awaited(records):
    return [
        str(record.message) for record in records
        if issubclass(record.category, RuntimeWarning)
        and 'never awaited' in str(record.message)]


def _tuple_render_ops() -> RenderOps:
    """Builds render ops for a fake, non-text output target, where
    elements become nested tuples.
    """
    return RenderOps(
        value=lambda substitution: ('value', substitution),
        element=lambda name, attributes, children: (
            name, dict(attributes), children),
        children=tuple)


class TestRender:
    """render()
    """

    def test_data_plus_values(self):
        tree = parse(
            ['<span>Hello, <Bold>', '</Bold>.</span>'], {'Bold': Bold})
        result = render(tree, ['world'])
        assert result == '<span>Hello, <b>world</b>.</span>'

    def test_literal_root(self):
        """A literal string must be returned as-is, without calling the
        value render op.
        """
        render_ops = RenderOps(
            value=Mock(), element=Mock(), children=Mock())
        assert render('foo', [], render_ops) == 'foo'
        assert render_ops.value.call_count == 0

    def test_literals_skip_value(self):
        """Only substitution indices may go through the value render op.
        Literal children must be passed straight to the children op.
        """
        render_ops = RenderOps(
            value=Mock(wraps=lambda substitution: substitution),
            element=Mock(return_value='element'),
            children=Mock(return_value='children'))
        tree = PositionalElement('div', {}, ('foo', 0))

        result = render(tree, ['bar'], render_ops)

        assert result == 'element'
        render_ops.value.assert_called_once_with('bar')
        render_ops.children.assert_called_once_with(['foo', 'bar'])
        render_ops.element.assert_called_once_with('div', {}, 'children')

    def test_custom_render_ops(self):
        """Render ops must fully determine the output type."""
        tree = parse(
            ['<ul class="', '"><li>', '</li><li>two</li></ul>'],
            config=ParseConfig(flatten_static=False))
        result = render(tree, ['menu', 'one'], _tuple_render_ops())

        assert result == (
            'ul',
            {'class': 'menu'},
            (
                ('li', {}, (('value', 'one'),)),
                ('li', {}, ('two',))))

    def test_component_props(self):
        """Components must be called with the resolved attributes plus
        the rendered children.
        """
        fake_component = Mock(return_value='rendered')
        tree = parse(
            ['<Fake name="', '" kind="static">Hi, <b>', '</b></Fake>'],
            {'Fake': fake_component})

        result = render(tree, ['Jane', 'there'])

        assert result == 'rendered'
        fake_component.assert_called_once_with({
            'name': 'Jane',
            'kind': 'static',
            'children': 'Hi, <b>there</b>'})

    def test_component_without_children(self):
        fake_component = Mock(return_value='')
        tree = parse_markup('<Fake/>', {'Fake': fake_component})
        render(tree, [])
        fake_component.assert_called_once_with({'children': ''})

    def test_out_of_range_index(self):
        """An index beyond the end of the substitutions must raise
        instead of rendering something bogus.
        """
        tree = parse(['<div>', '', '</div>'])
        with pytest.raises(SubstitutionIndexError) as exc_info:
            render(tree, ['only one'])

        assert exc_info.value.index == 1
        assert exc_info.value.count == 1

    def test_out_of_range_attribute_index(self):
        tree = PositionalElement('div', {'class': (0, ' ', 3)}, ())
        with pytest.raises(SubstitutionIndexError):
            render(tree, ['a'])

    def test_sync_component_failure(self):
        """Exceptions raised by sync components must propagate
        unchanged, straight out of render.
        """
        def Broken(props):  # noqa: N802
            raise ZeroDivisionError()

        tree = parse_markup('<div><Broken/></div>', {'Broken': Broken})
        with pytest.raises(ZeroDivisionError):
            render(tree, [])

    def test_sync_failure_after_async_sibling(self):
        """When a sync sibling fails after an async one already started,
        the failure must still be raised synchronously.
        """
        def Broken(props):  # noqa: N802
            raise ZeroDivisionError()

        tree = parse_markup(
            '<div><Delayed delay="0">a</Delayed><Broken/></div>',
            {'Delayed': Delayed, 'Broken': Broken})
        with pytest.raises(ZeroDivisionError):
            render(tree, [])

    def test_sync_failure_after_nested_async_sibling(self):
        """When a sync sibling fails, pending renders of earlier siblings
        must be closed all the way down, so that nothing is left behind
        that was never awaited.
        """
        def Broken(props):  # noqa: N802
            raise ZeroDivisionError()

        tree = parse_markup(
            '<div><p><Delayed delay="0">a</Delayed></p><Broken/></div>',
            {'Delayed': Delayed, 'Broken': Broken})
        with warnings.catch_warnings(record=True) as records:
            warnings.simplefilter('always')
            with pytest.raises(ZeroDivisionError):
                render(tree, [])
            gc.collect()

        assert not _never_awaited(records)

    def test_awaitable_element_attribute(self):
        """Awaitable substitutions can't be serialized as attributes of
        plain elements, so they must be rejected instead of being
        converted to text.
        """
        async def fetch_title():
            return 'title'

        tree = PositionalElement('div', {'title': 0}, ())
        coroutine = fetch_title()
        try:
            with pytest.raises(AwaitableAttributeValue) as exc_info:
                render(tree, [coroutine])
        finally:
            coroutine.close()

        assert exc_info.value.name == 'title'

    @pytest.mark.anyio
    async def test_awaitable_component_prop(self):
        """Components must receive awaitable substitutions unchanged,
        so that they can await them themselves.
        """
        async def Awaiting(props):  # noqa: N802
            return f'<p>{await props["data"]}</p>'

        async def fetch_data():
            return 'data'

        tree = parse(['<Awaiting data="', '"/>'], {'Awaiting': Awaiting})
        assert await render(tree, [fetch_data()]) == '<p>data</p>'

    @pytest.mark.anyio
    async def test_async_component(self):
        """A component returning an awaitable must make the whole render
        awaitable.
        """
        tree = parse_markup(
            '<p><Delayed delay="0">test</Delayed></p>',
            {'Delayed': Delayed})
        result = render(tree, [])

        assert inspect.isawaitable(result)
        assert await result == '<p>[test]</p>'

    @pytest.mark.anyio
    async def test_async_siblings_in_document_order(self):
        """Async siblings must run concurrently, and their results must
        be combined in document order rather than completion order.
        """
        event_log = EventLog()
        tree = parse_markup(
            '<span>'
            + '<Log name="One" delay="200">One</Log>'
            + '<Log name="Two" delay="100">Two</Log>'
            + '</span>',
            {'Log': event_log})

        result = await render(tree, [])

        assert result == '<span>(One)(Two)</span>'
        # Both must have started before either finished, and the shorter
        # one must have finished first
        assert set(event_log.events[:2]) == {
            ('start', 'One'), ('start', 'Two')}
        assert event_log.events[2:] == [('end', 'Two'), ('end', 'One')]

    @pytest.mark.anyio
    async def test_nested_async(self):
        """Async components nested deep within the tree must defer all
        of their ancestors, including sync components.
        """
        tree = parse_markup(
            '<div>'
            + '<Bold>x<Delayed delay="10"><i>[[[0]]]</i></Delayed></Bold>'
            + '[[[1]]]'
            + '</div>',
            {'Bold': Bold, 'Delayed': Delayed})

        result = await render(tree, ['deep', 'shallow'])

        assert result == '<div><b>x[<i>deep</i>]</b>shallow</div>'

    @pytest.mark.anyio
    async def test_async_failure(self):
        """The first async failure must reject the whole render with the
        component's own exception, not a wrapper.
        """
        tree = parse_markup(
            '<div><Delayed delay="50">a</Delayed><Exploding/></div>',
            {'Delayed': Delayed, 'Exploding': Exploding})

        with pytest.raises(ZeroDivisionError):
            await render(tree, [])

    @pytest.mark.anyio
    async def test_async_substitution(self):
        """Substituted values that are themselves awaitable must be
        awaited like async components.
        """
        async def fetch_name():
            return 'Jane'

        tree = parse(['<p>', '</p>'])
        result = await render(tree, [fetch_name()])
        assert result == '<p>Jane</p>'


class TestRenderToText:
    """render_to_text()
    """

    def test_single_substitution_coerced(self):
        """Even a template consisting of a single substitution must
        render to a string.
        """
        assert render_to_text(0, [42]) == '42'

    def test_list_substitution(self):
        assert render_to_text(0, [['Hello', 'world']]) == 'Helloworld'

    def test_none_substitution(self):
        tree = parse(['<p>', '</p>'])
        assert render_to_text(tree, [None]) == '<p></p>'

    @pytest.mark.anyio
    async def test_async(self):
        tree = parse_markup(
            '<Delayed delay="0">[[[0]]]</Delayed>', {'Delayed': Delayed})
        result = render_to_text(tree, [7])
        assert await result == '[7]'


class TestResolveAttributes:
    """resolve_attributes()
    """

    def test_multipart(self):
        """Multi-part values must be concatenated, in order, with no
        separators.
        """
        resolved = resolve_attributes(
            {'class': ('foo', 0, ' bar')}, ['-value-'])
        assert resolved == {'class': 'foo-value- bar'}

    def test_multipart_non_string(self):
        resolved = resolve_attributes({'id': (0, '-', 1)}, [1, 2])
        assert resolved == {'id': '1-2'}

    def test_single_index_passthrough(self):
        """Single substitutions must be passed through unconverted, so
        that objects can be used as component props.
        """
        name = {'first': 'Jane', 'last': 'Doe'}
        resolved = resolve_attributes({'name': 0}, [name])
        assert resolved['name'] is name

    def test_literal(self):
        assert resolve_attributes({'a': 'b'}, []) == {'a': 'b'}

    def test_awaitable_in_multipart(self):
        """Multi-part values are concatenated immediately, so awaitable
        parts must be rejected, naming the attribute.
        """
        async def fetch_class():
            return 'foo'

        coroutine = fetch_class()
        try:
            with pytest.raises(AwaitableAttributeValue) as exc_info:
                resolve_attributes({'class': ('a ', 0)}, [coroutine])
        finally:
            coroutine.close()

        assert exc_info.value.name == 'class'

    def test_awaitable_passthrough(self):
        async def fetch_data():
            return 'data'

        coroutine = fetch_data()
        try:
            resolved = resolve_attributes({'data': 0}, [coroutine])
        finally:
            coroutine.close()

        assert resolved['data'] is coroutine


class TestGetSubstitution:
    """get_substitution()
    """

    def test_happy_case(self):
        assert get_substitution(['a', 'b'], 1) == 'b'

    @pytest.mark.parametrize('index', [2, 3, -1])
    def test_out_of_bounds(self, index):
        """Negative indices must not wrap around to the end."""
        with pytest.raises(SubstitutionIndexError):
            get_substitution(['a', 'b'], index)

    def test_subclasses_index_error(self):
        with pytest.raises(IndexError):
            get_substitution([], 0)


def test_text_render_ops_are_default():
    tree = parse(['<p>', '</p>'])
    assert render(tree, ['x']) == render(tree, ['x'], TEXT_RENDER_OPS)


class TestClosePending:
    """close_pending()
    """

    def test_closes_nested_renders(self):
        """Closing a pending render must also close everything it was
        waiting on, including the components' own coroutines.
        """
        tree = parse_markup(
            '<div><p><Delayed delay="0">a</Delayed></p>[[[0]]]</div>',
            {'Delayed': Delayed})

        with warnings.catch_warnings(record=True) as records:
            warnings.simplefilter('always')
            result = render(tree, ['b'])
            assert inspect.isawaitable(result)
            close_pending(result)
            del result
            gc.collect()

        assert not _never_awaited(records)

    def test_closes_pending_text(self):
        tree = parse_markup(
            '<Delayed delay="0">[[[0]]]</Delayed>', {'Delayed': Delayed})

        with warnings.catch_warnings(record=True) as records:
            warnings.simplefilter('always')
            result = render_to_text(tree, [7])
            close_pending(result)
            del result
            gc.collect()

        assert not _never_awaited(records)

    def test_ignores_everything_else(self):
        """Non-awaitable outputs must be skipped silently."""
        close_pending('foo', 1, None, ['a'])
