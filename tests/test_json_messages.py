import json

import pytest

from splicenet.json_messages import (
    MessageId,
    QuestionEchoTimed,
    QuestionFilesCurrentDirectory,
    ResponseEchoTimed,
    ResponseFilesCurrentDirectory,
    message_id,
)


def test_message_id_values():
    assert MessageId(1) is MessageId.QUESTION_ECHO_TIMED
    assert MessageId(2) is MessageId.RESPONSE_ECHO_TIMED
    assert MessageId(3) is MessageId.QUESTION_FILES_CURRENT_DIRECTORY
    assert MessageId(4) is MessageId.RESPONSE_FILES_CURRENT_DIRECTORY
    assert message_id({"id": 4}) is MessageId(4)


def test_message_id_reads_string_or_number():
    assert message_id({"id": "1"}) is MessageId.QUESTION_ECHO_TIMED
    assert message_id({"id": 3}) is MessageId.QUESTION_FILES_CURRENT_DIRECTORY


@pytest.mark.parametrize("tree", [{}, {"id": "x"}, {"id": 9}, {"id": True}])
def test_message_id_rejects_bad_ids(tree):
    with pytest.raises(ValueError):
        message_id(tree)


def test_question_echo_from_tree():
    question = QuestionEchoTimed.from_tree({"id": "1", "client_sent": "123", "message": "hi"})
    assert question.client_sent == 123
    assert question.message == "hi"


def test_question_echo_wrong_id_rejected():
    with pytest.raises(ValueError):
        QuestionEchoTimed.from_tree({"id": "3", "client_sent": "1", "message": "hi"})


def test_question_echo_missing_field_rejected():
    with pytest.raises(ValueError):
        QuestionEchoTimed.from_tree({"id": "1", "message": "hi"})


def test_response_echo_json_round_trip():
    question = QuestionEchoTimed(123, "hi")
    tree = json.loads(ResponseEchoTimed(question, server_received=5).to_json())
    assert tree == {"id": "2", "client_sent": "123", "message": "hi", "server_received": "5"}
    assert message_id(tree) is MessageId.RESPONSE_ECHO_TIMED


def test_question_files_from_tree():
    question = QuestionFilesCurrentDirectory.from_tree({"id": 3, "max_length": "40"})
    assert question.max_length == 40


@pytest.mark.parametrize("length", ["-1", str(2**32)])
def test_question_files_max_length_range(length):
    with pytest.raises(ValueError):
        QuestionFilesCurrentDirectory.from_tree({"id": 3, "max_length": length})


def test_response_files_json():
    tree = json.loads(ResponseFilesCurrentDirectory(files=["a", "b"]).to_json())
    assert tree["files"] == ["a", "b"]
    assert message_id(tree) is MessageId.RESPONSE_FILES_CURRENT_DIRECTORY


def test_response_files_defaults_empty():
    tree = json.loads(ResponseFilesCurrentDirectory().to_json())
    assert tree["files"] == []