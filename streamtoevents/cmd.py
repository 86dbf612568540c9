import argparse
import asyncio
import sys

from streamtoevents import audio
from streamtoevents import config as relay_config
from streamtoevents import lifecycle
from streamtoevents import log
from streamtoevents import session as call_session
from streamtoevents import sink
from streamtoevents import transcriber
from streamtoevents.exceptions import FrameFormatError


class CommandError(Exception):
    pass


def get_event_store(config):
    if config.event_store_url:
        return sink.HttpEventStore(config.event_store_url)
    return sink.PrintEventStore()


def media_for_source(src):
    channels = ('external', 'internal')[:src.channels]
    return call_session.SelectedMedia(channels=channels, rate=src.rate)


async def relay_wav(args, config):
    src = audio.WaveFrameSource(args.wave_path,
                                chunk_frames=args.chunk_frames)
    provider = transcriber.WebsocketTranscriptionProvider.from_config(config)
    event_store = get_event_store(config)

    sess = call_session.Session()
    lifecycle.add_stream_to_sink(sess, config, provider, event_store)
    open_params = call_session.OpenParameters(
        conversation_id=args.conversation_id,
        participant=call_session.Participant(ani=args.ani, dnis=args.dnis),
    )

    try:
        async with src.listen():
            await sess.open(media_for_source(src), open_params)
            async for frame in src.frames:
                sess.emit_audio(frame)
                if args.realtime:
                    await asyncio.sleep(
                        audio.frame_sample_cnt(frame) / frame.rate)
                else:
                    await asyncio.sleep(0)
        await sess.close()
    finally:
        await event_store.close()


def cmd_relay_wav(args):
    config = relay_config.load_config()
    log.setup_logging(config.log_level)
    try:
        asyncio.run(relay_wav(args, config))
    except FrameFormatError as e:
        raise CommandError(str(e))


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description='Relay call audio to a transcription service.')
    subparsers = parser.add_subparsers(help='command')

    parser_relay = subparsers.add_parser(
        'relay-wav', help='Relay a wave file as one call.'
    )
    parser_relay.add_argument('wave_path', type=str,
                              help='16 bit mono or stereo wave file')
    parser_relay.add_argument('--conversation-id', type=str,
                              default='wav-conversation',
                              help='Conversation id of the call')
    parser_relay.add_argument('--ani', type=str,
                              help='Originating number')
    parser_relay.add_argument('--dnis', type=str,
                              help='Dialed number')
    parser_relay.add_argument('--chunk-frames', type=int, default=160,
                              help='Wave frames per audio frame')
    parser_relay.add_argument('--realtime', action='store_true',
                              help='Pace audio at its real duration')
    parser_relay.set_defaults(func=cmd_relay_wav)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if 'func' not in args:
        print('ERROR: a command is required', file=sys.stderr)
        sys.exit(2)
    try:
        args.func(args)
    except CommandError as e:
        print('ERROR: %s' % e, file=sys.stderr)
        sys.exit(1)
