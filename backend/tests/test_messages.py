import pytest

from quizrooms.services.rooms import messages
from quizrooms.services.rooms.errors import InvalidPayload


def test_create_room_defaults():
    cmd = messages.CreateRoom.from_payload({'username': '  ana '})
    assert cmd.username == 'ana'
    assert cmd.settings == messages.RequestedSettings(domain='Mixed')


def test_create_room_reads_numeric_strings():
    cmd = messages.CreateRoom.from_payload({
        'username': 'ana',
        'settings': {'domain': 'Logical', 'numQuestions': '5', 'timeLimit': 15, 'maxPlayers': 4},
    })
    assert cmd.settings == messages.RequestedSettings('Logical', 5, 15, 4)


@pytest.mark.parametrize('settings', [
    {'numQuestions': 'five'},
    {'numQuestions': 0},
    {'timeLimit': -3},
    {'maxPlayers': True},
    'Quant',
])
def test_create_room_rejects_bad_settings(settings):
    with pytest.raises(InvalidPayload):
        messages.CreateRoom.from_payload({'username': 'ana', 'settings': settings})


@pytest.mark.parametrize('payload', [None, [], {'username': ''}, {'username': '   '}, {'username': True}])
def test_username_is_required(payload):
    with pytest.raises(InvalidPayload):
        messages.CreateRoom.from_payload(payload)


def test_room_code_accepts_numbers():
    cmd = messages.JoinRoom.from_payload({'roomCode': 4821, 'username': 'ben'})
    assert cmd.room_code == '4821'


def test_submit_answer_requires_integer():
    cmd = messages.SubmitAnswer.from_payload({'roomCode': '4821', 'username': 'ben', 'answer': '2'})
    assert cmd.answer == 2
    with pytest.raises(InvalidPayload):
        messages.SubmitAnswer.from_payload({'roomCode': '4821', 'username': 'ben'})
    with pytest.raises(InvalidPayload):
        messages.SubmitAnswer.from_payload({'roomCode': '4821', 'username': 'ben', 'answer': False})


def test_chat_message_length_cap():
    ok = messages.ChatMessage.from_payload({'roomCode': '1', 'username': 'a', 'message': 'x' * 10}, max_length=10)
    assert ok.message == 'x' * 10
    with pytest.raises(InvalidPayload) as excinfo:
        messages.ChatMessage.from_payload({'roomCode': '1', 'username': 'a', 'message': 'x' * 11}, max_length=10)
    assert excinfo.value.to_dict()['error'] == 'InvalidPayload'
