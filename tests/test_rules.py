"""End-to-end detection on JavaScript / TypeScript / JSX snippets.

Every case runs the full pipeline: tree-sitter parse, scope analysis, unit
discovery and one cluster query per function.
"""
import pytest

from deadloop.analyzer.detector import DeadFunctionDetector

MUTUAL_PAIR = """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
"""


def dead_names(code: str, language: str = 'tsx'):
    report = DeadFunctionDetector().analyze_source(code, language, 'test.tsx')
    return [finding.name for finding in report.findings]


VALID = {
    'one used function': """
function foo(n: number): number {
  if (n === 0) return 0;
  return n + 1;
}

foo(10);
""",
    'one of two functions is used': MUTUAL_PAIR + "\nfoo(42);\n",
    'one of two functions is exported': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

export function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""",
    'exported arrow function': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

export const bar = (n: number): number => {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
};
""",
    'referenced in a default argument of an exported function': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

export function bar(n: number = foo(2)): number {
  if (n === 0) return 1;
  return n + 1;
}
""",
    'both exported': """
export function foo(n: number): number {
  return bar(n - 1);
}

export function bar(n: number): number {
  return foo(n - 1) + 1;
}
""",
    'one of two in an export list': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

const quux = 42;

export { foo, quux };

function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""",
    'default export declaration': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

export default function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""",
    'anonymous default export calls the function': """
function foo(n: number): number {
  if (n <= 0) return 0;
  return n - 1;
}

export default function (n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""",
    'default exported later': MUTUAL_PAIR + "\nexport default bar;\n",
    'aliased to a called identifier': MUTUAL_PAIR + "\nconst fnord = foo;\nfnord(42);\n",
    'aliased to an identifier in an expression statement': MUTUAL_PAIR + "\nconst fnord = foo;\n\nfnord;\n",
    'destructuring initializer': MUTUAL_PAIR + "\nconst { length } = foo;\n",
    'used in inner function of exported function': """
export function myExportedFunction() {
  function myInnerFunction() {
    return foo();
  }

  return myInnerFunction();
}

function foo() {
  return 42;
}
""",
    'used in JSX of exported component': """
export function MyExportedComponent() {
  return <Foo />;
}

function Foo() {
  return 42;
}
""",
    'used in JSX of inner component': """
export function MyExportedComponent() {
  function InnerComponent() {
    return <Foo />;
  }
  return <InnerComponent />;
}

function Foo() {
  return 42;
}
""",
    'alias used in JSX': """
const Baz = Foo;

export function MyExportedComponent() {
  function InnerComponent() {
    return <Baz />;
  }
  return <InnerComponent />;
}

function Foo() {
  return 42;
}
""",
    'used in static JSX': """
const Baz = <Foo />;

function Foo() {
  return 42;
}
""",
    'used in a static JSX expression statement': """
<Foo />;

function Foo() {
  return 42;
}
""",
    'alias used in static JSX': """
const Bar = Foo;
const Baz = <Bar />;

function Foo() {
  return 42;
}
""",
    'referenced in a type annotation': MUTUAL_PAIR + "\nconst fnord: ReturnType<typeof foo> = 42;\n",
    'anonymous function in a destructuring initializer': """
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

const { length } = function (n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
};
""",
    'used from an anonymous callback': """
function foo() {
  return 1;
}

[1, 2, 3].forEach(function () {
  foo();
});
""",
    'used from a class method': """
function helper() {
  return 1;
}

export class Widget {
  render() {
    return helper();
  }
}
""",
    'parenthesized alias that is called': "function foo() {}\nconst a = (foo);\na();\n",
}


INVALID = {
    'one unused function': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return n + 1;
}

// foo() is not used anywhere
""", ['foo']),
    'two unused functions': (MUTUAL_PAIR, ['foo', 'bar']),
    'unused alias': (MUTUAL_PAIR + "\nconst fnord = foo;\n", ['foo', 'bar']),
    'three unused functions': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

function bar(n: number): number {
  if (n === 0) return 1;
  return baz(n - 1) + 1;
}

function baz(n: number): number {
  if (n === 0) return 42;
  return foo(n - 1);
}
""", ['foo', 'bar', 'baz']),
    'third function is definitely unused': ("""
function baz(n: number): number {
  if (n === 0) return 42;
  return foo(n - 1);
}

function foo(n: number): number {
  if (n === 0) return 0;
  return baz(42);
}

function bar(n: number): number {
  if (n === 0) return baz(1);
  return foo(n - 1) + 1;
}
""", ['baz', 'foo', 'bar']),
    'second function is definitely unused': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return 42;
}

function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""", ['foo', 'bar']),
    'declaration and arrow function': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

const bar = (n: number): number => {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
};
""", ['foo', 'bar']),
    'declaration and function expression': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

const bar = function (n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
};
""", ['foo', 'bar']),
    'declaration, arrow function and function expression': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

const bar = (n: number): number => {
  if (n === 0) return 1;
  return baz(n - 1) + 1;
};

const baz = function (n: number): number {
  if (n === 0) return 42;
  return foo(n - 1);
};
""", ['foo', 'bar', 'baz']),
    'two unused arrow functions': ("""
const foo = (n: number): number => {
  if (n === 0) return 0;
  return bar(n - 1);
};

const bar = (n: number): number => {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
};
""", ['foo', 'bar']),
    'typeof on an unused arrow function': (
        MUTUAL_PAIR + "\nconst fnord: typeof foo = () => 42;\n", ['fnord']),
    'parenthesized arrow initializer': ("const foo = (() => 1);\n", ['foo']),
    'parenthesized unused alias': ("function foo() {}\nconst a = (foo);\n", ['foo']),
    'inner functions': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

function bar(n: number): number {
  function baz() {
    foo(10);
  }
  baz();

  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""", ['foo', 'bar', 'baz']),
    'referenced in own default argument': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  return bar(n - 1);
}

function bar(n: number = foo(2)): number {
  if (n === 0) return 1;
  return n + 1;
}
""", ['foo', 'bar']),
    'bare expression statement': (MUTUAL_PAIR + "\nfoo;\n", ['foo', 'bar']),
    'direct recursion in a cycle': ("""
function foo(n: number): number {
  if (n === 0) return foo(42);
  return bar(n - 1);
}

function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""", ['foo', 'bar']),
    'only direct recursion': ("""
function foo(n: number): number {
  if (n === 0) return foo(42);
  return 42;
}

function bar(n: number): number {
  if (n === 0) return 1;
  return foo(n - 1) + 1;
}
""", ['foo', 'bar']),
    'two unused functions inside an exported function': ("""
export function myExportedFunction() {
  function foo(n: number): number {
    if (n === 0) return 0;
    return bar(n - 1);
  }

  function bar(n: number): number {
    if (n === 0) return 1;
    return foo(n - 1) + 1;
  }

  return 42;
}
""", ['foo', 'bar']),
    'two unused functions inside an unused function': ("""
function myUnusedFunction() {
  function foo(n: number): number {
    if (n === 0) return 0;
    return bar(n - 1);
  }

  function bar(n: number): number {
    if (n === 0) return 1;
    return foo(n - 1) + 1;
  }

  return 42;
}
""", ['myUnusedFunction', 'foo', 'bar']),
    'recursive calls only': ("""
function foo(n: number): number {
  if (n === 0) return 0;
  if (n <= 100) return 0;
  return foo(n - 1);
}
""", ['foo']),
    'write references only': (MUTUAL_PAIR + "\nfoo = () => {};\n", ['foo', 'bar']),
}


@pytest.mark.parametrize('code', VALID.values(), ids=list(VALID))
def test_valid(code):
    """No function is reported."""
    assert dead_names(code) == []


@pytest.mark.parametrize('code,expected', INVALID.values(), ids=list(INVALID))
def test_invalid(code, expected):
    """Exactly the expected functions are reported, in document order."""
    assert dead_names(code) == expected


def test_deeply_nested_use():
    """A use buried in hundreds of nested calls is still found."""
    nested = 'foo'
    for i in range(1, 501):
        nested = f'f{i}({nested})'
    code = "function foo(n: number): number {\n  return 42;\n}\n\n" + nested + ";\n"
    assert dead_names(code) == []


def test_plain_javascript_grammar():
    """The javascript grammar (with JSX) gives the same answers."""
    code = """
function Foo() {
  return 42;
}

function unused() {
  return helper();
}

function helper() {
  return unused();
}

export const App = () => <Foo />;
"""
    assert dead_names(code, 'javascript') == ['unused', 'helper']


def test_finding_details():
    """Findings carry position, message and cluster members."""
    report = DeadFunctionDetector().analyze_source(MUTUAL_PAIR + "\nfunction lonely() {}\n", 'typescript', 'pair.ts')
    assert report.functions == 3
    foo, bar, lonely = report.findings

    assert (foo.name, foo.line, foo.column) == ('foo', 2, 1)
    assert foo.kind == 'function_declaration'
    assert foo.file_path == 'pair.ts'
    assert foo.message == "This function `foo` is probably unused"
    assert foo.cluster == ['foo', 'bar']
    assert bar.cluster == ['foo', 'bar']
    assert lonely.cluster == ['lonely']
