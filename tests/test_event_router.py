import asyncio
import unittest
from unittest.mock import Mock

from electron_webrtc_py.data_channel import RTCDataChannel
from electron_webrtc_py.enums import IceGatheringState, PeerConnectionEventType
from electron_webrtc_py.events import MediaStreamEvent, RTCDataChannelEvent, RTCPeerConnectionIceEvent
from electron_webrtc_py.logger import logger, LogLevel
from electron_webrtc_py.wrtc import Wrtc
from fakes import FakeDaemon

OFFER_SDP = "v=0\r\no=- 1 1 IN IP4 0.0.0.0\r\ns=-\r\nt=0 0\r\n"
CANDIDATE = {
    "candidate": "candidate:842163049 1 udp 1677729535 1.2.3.4 54321 typ srflx",
    "sdpMid": "0",
    "sdpMLineIndex": 0,
}


class TestEventRouter(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        logger.set_log_level(LogLevel.All)
        self.daemon = FakeDaemon()
        self.wrtc = Wrtc(daemon=self.daemon)
        self.pc = self.wrtc.RTCPeerConnection()

    async def asyncTearDown(self):
        logger.set_log_level(LogLevel.Disabled)

    def deliver(self, message, pc=None):
        pc = pc or self.pc
        self.daemon.deliver(f"pc:{pc.id}", message)

    async def test_ice_candidate_updates_state_before_notifying(self):
        seen = []

        @self.pc.on("icecandidate")
        def on_ice_candidate(event):
            seen.append((event, self.pc.iceGatheringState))

        self.deliver({
            "type": "icecandidate",
            "event": {"candidate": CANDIDATE},
            "iceGatheringState": "gathering",
            "offer": None,
        })

        self.assertEqual(len(seen), 1)
        event, state_at_notify = seen[0]
        self.assertIsInstance(event, RTCPeerConnectionIceEvent)
        self.assertEqual(state_at_notify, IceGatheringState.Gathering.value)
        self.assertEqual(event.candidate.ip, "1.2.3.4")
        self.assertEqual(event.candidate.port, 54321)
        self.assertEqual(event.candidate.sdpMid, "0")
        self.assertEqual(event.candidate.sdpMLineIndex, 0)

    async def test_ice_candidate_keeps_remote_init(self):
        handler = Mock()
        self.pc.on("icecandidate", handler)
        remote = dict(CANDIDATE, usernameFragment="abcd")
        remote["candidate"] += " generation 0 ufrag abcd network-id 1"

        self.deliver({"type": "icecandidate", "event": {"candidate": remote}, "iceGatheringState": "gathering"})

        event = handler.call_args[0][0]
        self.assertEqual(event.candidate_init, remote)

        task = asyncio.create_task(self.pc.addIceCandidate(event.candidate_init))
        await asyncio.sleep(0)
        code = self.daemon.evals[-1]
        self.assertIn('"usernameFragment": "abcd"', code)
        self.assertIn("network-id 1", code)

        self.daemon.reply(self.daemon.last_token())
        await task

    async def test_ice_candidate_end_of_gathering(self):
        handler = Mock()
        self.pc.on("icecandidate", handler)

        self.deliver({"type": "icecandidate", "event": {}, "iceGatheringState": "complete", "offer": None})

        self.assertEqual(self.pc.iceGatheringState, "complete")
        handler.assert_called_once_with(RTCPeerConnectionIceEvent(None))

    async def test_ice_candidate_offer_is_merged_into_cache(self):
        self.deliver({
            "type": "icecandidate",
            "event": {"candidate": CANDIDATE},
            "iceGatheringState": "gathering",
            "offer": {"type": "offer", "sdp": OFFER_SDP},
        })
        self.assertEqual(self.pc._offer.sdp, OFFER_SDP)

        updated = OFFER_SDP + "a=candidate:1 1 udp 1 1.2.3.4 1 typ host\r\n"
        self.deliver({
            "type": "icecandidate",
            "event": {},
            "iceGatheringState": "complete",
            "offer": {"sdp": updated},
        })
        self.assertEqual(self.pc._offer.type, "offer")
        self.assertEqual(self.pc._offer.sdp, updated)

        offer = await self.pc.createOffer()
        self.assertEqual(offer.sdp, updated)
        self.assertEqual(self.daemon.count("pc.createOffer("), 0)

    async def test_state_change_events(self):
        ice_handler = Mock()
        signaling_handler = Mock()
        self.pc.on("iceconnectionstatechange", ice_handler)
        self.pc.on("signalingstatechange", signaling_handler)

        self.deliver({"type": "iceconnectionstatechange", "iceConnectionState": "checking"})
        self.deliver({"type": "signalingstatechange", "signalingState": "have-local-offer"})

        self.assertEqual(self.pc.iceConnectionState, "checking")
        self.assertEqual(self.pc.signalingState, "have-local-offer")
        ice_handler.assert_called_once_with("checking")
        signaling_handler.assert_called_once_with("have-local-offer")

    async def test_missing_handler_still_mutates_state(self):
        self.deliver({"type": "iceconnectionstatechange", "iceConnectionState": "connected"})
        self.deliver({"type": "signalingstatechange", "signalingState": "closed"})

        self.assertEqual(self.pc.iceConnectionState, "connected")
        self.assertEqual(self.pc.signalingState, "closed")

    async def test_inbound_data_channel_is_registered(self):
        handler = Mock()
        self.pc.on("datachannel", handler)

        self.deliver({
            "type": "datachannel",
            "key": "1",
            "channel": {"id": 1, "label": "chat", "ordered": True, "protocol": "", "readyState": "open"},
        })

        event = handler.call_args[0][0]
        self.assertIsInstance(event, RTCDataChannelEvent)
        channel = event.channel
        self.assertIsInstance(channel, RTCDataChannel)
        self.assertTrue(channel.initialized)
        self.assertEqual(channel.id, 1)
        self.assertEqual(channel.label, "chat")
        self.assertTrue(channel.ordered)
        self.assertEqual(channel.readyState, "open")
        self.assertIs(self.pc.dataChannels["1"], channel)

    async def test_stream_events_are_placeholders(self):
        added = Mock()
        removed = Mock()
        self.pc.on("addstream", added)
        self.pc.on("removestream", removed)

        self.deliver({"type": "addstream"})
        self.deliver({"type": "removestream", "event": {"id": "stream-1"}})

        added.assert_called_once_with(MediaStreamEvent())
        removed.assert_called_once_with(MediaStreamEvent(stream={"id": "stream-1"}))

    async def test_passthrough_events_are_forwarded_verbatim(self):
        negotiation = Mock()
        idp_error = Mock()
        self.pc.on("negotiationneeded", negotiation)
        self.pc.on("idpassertionerror", idp_error)

        self.deliver({"type": "negotiationneeded"})
        idp_event = {"idp": "example.org", "loginUrl": "https://example.org/login", "protocol": "default"}
        self.deliver({"type": "idpassertionerror", "event": idp_event})

        negotiation.assert_called_once_with({})
        idp_error.assert_called_once_with(idp_event)

    async def test_every_event_kind_is_routed(self):
        self.assertEqual(set(self.pc._routes), set(PeerConnectionEventType))

    async def test_unknown_event_is_ignored(self):
        handler = Mock()
        self.pc.on("bogus", handler)
        self.deliver({"type": "bogus"})
        handler.assert_not_called()

    async def test_async_handler_is_scheduled(self):
        received = asyncio.Event()

        @self.pc.on("negotiationneeded")
        async def on_negotiation_needed(event):
            received.set()

        self.deliver({"type": "negotiationneeded"})
        await asyncio.wait_for(received.wait(), timeout=1.0)

    async def test_events_are_scoped_to_their_connection(self):
        other = self.wrtc.RTCPeerConnection()
        self.deliver({"type": "signalingstatechange", "signalingState": "have-remote-offer"}, pc=other)

        self.assertEqual(other.signalingState, "have-remote-offer")
        self.assertEqual(self.pc.signalingState, "stable")

    async def test_local_calls_do_not_change_ice_or_signaling_state(self):
        tasks = [
            asyncio.create_task(self.pc.setLocalDescription({"type": "offer", "sdp": OFFER_SDP})),
            asyncio.create_task(self.pc.setRemoteDescription({"type": "answer", "sdp": OFFER_SDP})),
            asyncio.create_task(self.pc.addIceCandidate(CANDIDATE)),
        ]
        await asyncio.sleep(0)
        for token in self.daemon.tokens():
            self.daemon.reply(token)
        await asyncio.gather(*tasks)

        self.assertEqual(self.pc.iceGatheringState, "new")
        self.assertEqual(self.pc.iceConnectionState, "new")
        self.assertEqual(self.pc.signalingState, "stable")


if __name__ == '__main__':
    unittest.main()
