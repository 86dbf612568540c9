import argparse
import asyncio
import io
import json
import os
import wave
from unittest import mock

import fixtures

from streamtoevents import cmd
from streamtoevents import config
from streamtoevents import sink
from streamtoevents.tests import base
from streamtoevents.tests import fakes


class ParseArgsTestCase(base.TestCase):
    def test_relay_wav(self):
        args = cmd.parse_args(['relay-wav', 'call.wav', '--conversation-id',
                               'c-1', '--ani', '+15550100', '--realtime'])
        self.assertEqual('call.wav', args.wave_path)
        self.assertEqual('c-1', args.conversation_id)
        self.assertEqual('+15550100', args.ani)
        self.assertIsNone(args.dnis)
        self.assertEqual(160, args.chunk_frames)
        self.assertTrue(args.realtime)
        self.assertIs(cmd.cmd_relay_wav, args.func)

    def test_event_store_choice(self):
        self.assertIsInstance(
            cmd.get_event_store(config.RelayConfig()), sink.PrintEventStore)
        self.assertIsInstance(
            cmd.get_event_store(config.RelayConfig(
                event_store_url='https://events.example.com/records')),
            sink.HttpEventStore)


class RelayWavTestCase(base.TestCase):
    def _write_wave(self):
        path = os.path.join(self.useFixture(fixtures.TempDir()).path,
                            'call.wav')
        with wave.open(path, 'wb') as wav:
            wav.setnchannels(2)
            wav.setsampwidth(2)
            wav.setframerate(8000)
            wav.writeframes(b'\0' * 320 * 4)
        return path

    @base.asynctest
    async def test_relay_wav(self):
        args = argparse.Namespace(
            wave_path=self._write_wave(), conversation_id='c-1',
            ani='+15550100', dnis='+15550199', chunk_frames=160,
            realtime=False)
        conf = config.RelayConfig(content_redaction_enabled=False,
                                  relay_drain_timeout=5)
        fake_ws = fakes.FakeProviderWS(
            responses=[{'UtteranceEvent': {'Transcript': 'hello'}}])
        out = io.StringIO()

        with mock.patch('websockets.connect') as mock_ws, \
                mock.patch('sys.stdout', out):
            mock_ws.return_value = fake_ws.connect()
            await cmd.relay_wav(args, conf)

        records = [json.loads(line) for line in out.getvalue().splitlines()]
        self.assertEqual(
            [('call', 'START'), ('status', 'START_TRANSCRIPT'),
             ('analytics-segment', None), ('status', 'END_TRANSCRIPT'),
             ('call', 'END')],
            [(r['eventType'], r.get('eventStatus')) for r in records])
        self.assertEqual(2, len(fake_ws.sent_audio()))

    @base.asynctest
    async def test_relay_wav_realtime(self):
        args = argparse.Namespace(
            wave_path=self._write_wave(), conversation_id='c-1',
            ani='+15550100', dnis='+15550199', chunk_frames=100,
            realtime=True)
        conf = config.RelayConfig(content_redaction_enabled=False)
        fake_ws = fakes.FakeProviderWS()
        loop = asyncio.get_running_loop()

        with mock.patch('websockets.connect') as mock_ws, \
                mock.patch('sys.stdout', io.StringIO()):
            mock_ws.return_value = fake_ws.connect()
            started = loop.time()
            await cmd.relay_wav(args, conf)
            elapsed = loop.time() - started

        # 320 frames at 8kHz, the short last chunk paced by its own length
        self.assertGreaterEqual(elapsed, 0.039)
        self.assertEqual([400, 400, 400, 80],
                         [len(a) for a in fake_ws.sent_audio()])
