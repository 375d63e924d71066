import pytest

from wavecommon.abstractions import (
    Closable,
    Requestable,
    Responseable,
    Server,
    make_request,
    make_response,
)


class Doubler(Requestable):
    def request(self, request):
        return request * 2


class Failing(Requestable):
    def request(self, request):
        raise ValueError("bad request")


class Answer(Responseable):
    def __init__(self, value):
        self.value = value

    def response(self):
        return {"value": self.value}


def test_make_request_uses_new_instance():
    assert make_request(Doubler, 21) == 42


def test_make_request_propagates_errors():
    with pytest.raises(ValueError, match="bad request"):
        make_request(Failing, 1)


def test_make_response():
    assert make_response(Answer(7)) == {"value": 7}


@pytest.mark.parametrize("cls", [Requestable, Responseable, Closable, Server])
def test_abstract_interfaces_cannot_be_instantiated(cls):
    with pytest.raises(TypeError):
        cls()