# tests/conftest.py
"""
Shared fixtures, node builders and template sources for the test suite.
"""

from typing import List, Optional, Sequence

import pytest

from directive_lint.checkers import CheckerRunner
from directive_lint.expressions import parse_expression
from directive_lint.parser import parse_template
from directive_lint.template_ast import (
    DirectiveBinding,
    DirectiveValue,
    HostElement,
    ScopeFrame,
    SourceLocation,
    Variable,
)


# ─────────────────────────────────────────────────────────────────────
#  Node builders
# ─────────────────────────────────────────────────────────────────────

def make_binding(
    name: str = "model",
    value: Optional[str] = "foo",
    argument: Optional[str] = None,
    modifiers: Sequence[str] = (),
    line: int = 1,
) -> DirectiveBinding:
    directive_value = None
    if value is not None:
        directive_value = DirectiveValue(value, parse_expression(value))
    return DirectiveBinding(
        name=name,
        argument=argument,
        modifiers=tuple(modifiers),
        value=directive_value,
        location=SourceLocation("test.vue", line, 1),
    )


def make_scope(*frames: Sequence[str]) -> Optional[ScopeFrame]:
    """Outermost frame first: ``make_scope(["row"], ["cell"])``."""
    scope = None
    for names in frames:
        scope = ScopeFrame(tuple(Variable(n) for n in names), scope)
    return scope


def make_element(
    tag: str = "input",
    bindings: Sequence[DirectiveBinding] = (),
    attributes: Optional[dict] = None,
    scope: Optional[ScopeFrame] = None,
    namespace: str = "html",
) -> HostElement:
    return HostElement(
        tag_name=tag,
        bindings=tuple(bindings),
        attributes=dict(attributes or {}),
        scope=scope,
        namespace=namespace,
    )


def messages_for(source: str, runner: Optional[CheckerRunner] = None) -> List[str]:
    """Parse ``source`` and return every rendered diagnostic message."""
    runner = runner or CheckerRunner()
    results = runner.run(parse_template(source, file="test.vue"), file="test.vue")
    return [d.message for d in results.diagnostics]


def ids_for(source: str, runner: Optional[CheckerRunner] = None) -> List[str]:
    runner = runner or CheckerRunner()
    results = runner.run(parse_template(source, file="test.vue"), file="test.vue")
    return [d.error_id for d in results.diagnostics]


# ─────────────────────────────────────────────────────────────────────
#  Template sources
# ─────────────────────────────────────────────────────────────────────

TODO_LIST_VUE = '''\
<template>
  <ul class="todos">
    <!-- one row per todo -->
    <li v-for="(todo, index) in todos" :key="todo.id">
      <input type="checkbox" v-model="todo.done">
      <input v-model.trim="todo.title"/>
      <span v-text="index"></span>
    </li>
  </ul>
</template>

<script>
export default {
  data() { return { todos: [] } },
  computed: { open() { return this.todos.filter(t => t.done < 1) } }
}
</script>

<style scoped>
.todos > li { list-style: none; }
</style>
'''

BROKEN_VUE = '''\
<template>
  <div>
    <li v-for="item in items">
      <input v-model="item">
    </li>
    <transition v-model="shown"></transition>
    <input :type="kind" v-model.lazy.bogus="form[key]">
    <div v-html:arg.raw></div>
  </div>
</template>
'''

SCOPED_SLOT_VUE = '''\
<template>
  <my-table>
    <template slot-scope="{ row }">
      <my-cell v-model="row"></my-cell>
    </template>
    <template v-slot:footer="footer">
      <my-field v-model="footer.total"></my-field>
    </template>
  </my-table>
</template>
'''


# ─────────────────────────────────────────────────────────────────────
#  Fixtures
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def runner():
    return CheckerRunner()


@pytest.fixture
def vue_file(tmp_path):
    """Write a component source to a temp file and return its path."""
    def _write(source: str, name: str = "Component.vue") -> str:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return _write
