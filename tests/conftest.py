"""
共通フィクスチャ
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fakes import FakeElement, FakePage, FakeSession


@pytest.fixture
def page():
    return FakePage(url='https://example.com/list')


@pytest.fixture
def session(page):
    return FakeSession(page)


@pytest.fixture
def actions(session):
    return session.actions()


@pytest.fixture
def item_elements():
    """.item にマッチする5つの要素"""
    return [
        FakeElement(
            text=f'Item {i}',
            attrs={'href': f'/items/{i}'},
            children={
                '.title': [FakeElement(f'  Title {i}  ')],
                '.price': [FakeElement(f'{i * 10}')],
            },
        )
        for i in range(5)
    ]
