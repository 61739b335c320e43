"""标签选择器

语法: ``label_name ":" (comma_list | "/" regex "/")``

标签名只允许字母数字和内部连字符（与主机名规则一致），例如
``hostname:web1,web2`` 或 ``rack:/^rack203-.*/``。正则内不支持转义 ``/``，
结尾的 ``/`` 之后不能再有字符（如 ``hostname:/a/xyz`` 无效）。列表值中
不能包含空格和制表符，逗号用于分隔。
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Iterable

from .exceptions import SelectorError

LABEL_NAME_PATTERN = r'[A-Za-z0-9]+(?:-+[A-Za-z0-9]+)*'

_TERM_RE = re.compile(rf'^(?P<name>{LABEL_NAME_PATTERN}):(?P<value>.*)\Z', re.DOTALL)
_REGEX_VALUE_RE = re.compile(r'^/(?P<pattern>[^/]+)/\Z')
_LIST_VALUE_RE = re.compile(r'^[^, \t]+(?:,[^, \t]+)*\Z')


class TermMatcher(ABC):
    """标签值匹配器"""

    @abstractmethod
    def matches(self, label_value: str) -> bool:
        pass


class ListMatcher(TermMatcher):
    """精确匹配列表中的任意一项"""

    def __init__(self, items: List[str]):
        self.items = list(items)

    def matches(self, label_value: str) -> bool:
        return label_value in self.items

    def __repr__(self) -> str:
        return f"ListMatcher({self.items!r})"


class RegexMatcher(TermMatcher):
    """正则搜索匹配（不要求锚定）"""

    def __init__(self, pattern: 're.Pattern'):
        self.pattern = pattern

    def matches(self, label_value: str) -> bool:
        return self.pattern.search(label_value) is not None

    def __repr__(self) -> str:
        return f"RegexMatcher({self.pattern.pattern!r})"


class Term:
    """单个选择条件 ``name:matcher``"""

    def __init__(self, name: str, matcher: TermMatcher):
        self.name = name
        self.matcher = matcher

    def matches(self, labels: Dict[str, str]) -> bool:
        """标签中不存在该键时视为不匹配"""
        if self.name not in labels:
            return False
        return self.matcher.matches(str(labels[self.name]))

    def __repr__(self) -> str:
        return f"Term({self.name!r}, {self.matcher!r})"


def parse_label_value(value: str) -> TermMatcher:
    """
    解析匹配器部分

    Raises:
        SelectorError: 语法或正则无效
    """
    regex_match = _REGEX_VALUE_RE.match(value)
    if regex_match:
        try:
            return RegexMatcher(re.compile(regex_match.group('pattern')))
        except re.error as e:
            raise SelectorError(f"无效的正则表达式 '{value}': {e}", term=value)

    if value.startswith('/'):
        raise SelectorError(f"正则表达式必须以 '/' 开始和结束: '{value}'", term=value)

    if not _LIST_VALUE_RE.match(value):
        raise SelectorError(f"无效的标签值列表: '{value}'", term=value)

    return ListMatcher(value.split(','))


def parse_term(text: str) -> Term:
    """
    解析 ``name:matcher`` 形式的选择条件

    Args:
        text: 选择条件字符串

    Returns:
        Term: 解析后的选择条件

    Raises:
        SelectorError: 语法无效
    """
    match = _TERM_RE.match(text)
    if not match:
        raise SelectorError(f"无效的选择条件 '{text}'，格式应为 name:value1,value2 或 name:/regex/",
                            term=text)

    matcher = parse_label_value(match.group('value'))
    return Term(match.group('name'), matcher)


class LabelSelector:
    """多个选择条件的组合，所有条件都匹配才算选中"""

    def __init__(self, terms: Iterable[Term] = ()):
        self.terms = list(terms)

    @classmethod
    def parse(cls, texts: Iterable[str]) -> 'LabelSelector':
        return cls(parse_term(text) for text in texts)

    def matches(self, labels: Dict[str, str]) -> bool:
        return all(term.matches(labels) for term in self.terms)

    def __bool__(self) -> bool:
        return bool(self.terms)
