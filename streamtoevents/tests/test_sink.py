import io
import json

import httpx

from streamtoevents import events
from streamtoevents import sink
from streamtoevents.exceptions import EventWriteError
from streamtoevents.tests import base


def call_start():
    return events.CallEvent(call_id='c-1', event_status=events.CALL_START,
                            from_number='+15550100', to_number='+15550199')


class RecordTestCase(base.TestCase):
    def test_call_event_record(self):
        record = call_start().to_record()
        self.assertEqual('call', record['eventType'])
        self.assertEqual('c-1', record['callId'])
        self.assertEqual('START', record['eventStatus'])
        self.assertEqual('STEREO', record['channel'])
        self.assertEqual('+15550100', record['fromNumber'])
        self.assertEqual('+15550199', record['toNumber'])
        self.assertIn('createdAt', record)

    def test_status_event_record(self):
        record = events.StatusEvent(
            call_id='c-1', event_status=events.TRANSCRIPT_START,
            transaction_id='sess-1').to_record()
        self.assertEqual('status', record['eventType'])
        self.assertEqual('START_TRANSCRIPT', record['eventStatus'])
        self.assertEqual('sess-1', record['transactionId'])

    def test_segment_record(self):
        raw = {'UtteranceEvent': {'Transcript': 'hi'}}
        record = events.AnalyticsSegment(
            call_id='c-1', event=raw, transaction_id='sess-1').to_record()
        self.assertEqual('analytics-segment', record['eventType'])
        self.assertEqual(raw, record['event'])

    def test_invalid_status(self):
        self.assertRaises(ValueError, events.CallEvent, call_id='c-1',
                          event_status=events.TRANSCRIPT_START)


class HttpEventStoreTestCase(base.TestCase):
    @base.asynctest
    async def test_write(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = sink.HttpEventStore('https://events.example.com/records',
                                    client=client)
        await store.write(call_start())
        await store.close()
        await client.aclose()

        self.assertEqual(1, len(requests))
        self.assertEqual('POST', requests[0].method)
        self.assertEqual('https://events.example.com/records',
                         str(requests[0].url))
        body = json.loads(requests[0].content)
        self.assertEqual('c-1', body['partitionKey'])
        self.assertEqual('START', body['data']['eventStatus'])

    @base.asynctest
    async def test_write_error_status(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(
            lambda request: httpx.Response(503)))
        store = sink.HttpEventStore('https://events.example.com/records',
                                    client=client)
        with self.assertRaises(EventWriteError) as ctxt:
            await store.write(call_start())
        self.assertEqual('c-1', ctxt.exception.call_id)
        self.assertIsInstance(ctxt.exception.cause, httpx.HTTPStatusError)
        await client.aclose()

    @base.asynctest
    async def test_write_transport_error(self):
        def handler(request):
            raise httpx.ConnectError('refused', request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = sink.HttpEventStore('https://events.example.com/records',
                                    client=client)
        with self.assertRaises(EventWriteError):
            await store.write(call_start())
        await client.aclose()


class PrintEventStoreTestCase(base.TestCase):
    @base.asynctest
    async def test_write(self):
        out = io.StringIO()
        store = sink.PrintEventStore(out)
        await store.write(call_start())
        await store.close()
        record = json.loads(out.getvalue())
        self.assertEqual('c-1', record['callId'])
