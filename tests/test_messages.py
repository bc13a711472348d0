"""Tests for worker messages."""

import multiprocessing
import unittest

from pydantic import ValidationError

from feedcycle.errors import ErrorKind
from feedcycle.pipeline import (
    FailedMessage,
    HeadersMessage,
    PendingArticleMessage,
    PipeChannel,
    SuccessMessage,
    decode_message,
    encode_message,
)

from fixtures import make_feed


class TestMessages(unittest.TestCase):
    """Test cases for the tagged message union."""

    def test_status_tags(self):
        self.assertEqual(encode_message(HeadersMessage(link="l", last_modified="X", etag="Y"))["status"], "headers")
        self.assertEqual(encode_message(PendingArticleMessage())["status"], "pendingArticle")
        self.assertEqual(encode_message(SuccessMessage(link="l"))["status"], "success")
        self.assertEqual(encode_message(FailedMessage(link="l"))["status"], "failed")

    def test_decode_picks_variant(self):
        message = decode_message(
            {"status": "failed", "link": "l", "rss_list": [make_feed().model_dump(mode="json")],
             "error_kind": "fetch"}
        )
        self.assertIsInstance(message, FailedMessage)
        self.assertEqual(message.error_kind, ErrorKind.FETCH)
        self.assertEqual(message.rss_list[0].id, "feed-x")

    def test_success_without_collection(self):
        message = decode_message({"status": "success", "link": "l"})
        self.assertIsNone(message.memory_collection)

    def test_unknown_status(self):
        with self.assertRaises(ValidationError):
            decode_message({"status": "bogus", "link": "l"})

    def test_pipe_channel(self):
        receiver, sender = multiprocessing.Pipe(duplex=False)
        channel = PipeChannel(sender)
        channel.send(SuccessMessage(link="l"))
        channel.close()

        self.assertEqual(decode_message(receiver.recv()), SuccessMessage(link="l"))
        with self.assertRaises(EOFError):
            receiver.recv()
