"""JavaScript fragments injected into the remote environment.

The host exposes ``send(topic, payload)`` to report messages back. Connections
live in ``window.conns`` keyed by connection id, and each connection keeps its
data channels in ``pc.dataChannels`` keyed by channel key.
"""
import json
from string import Template
from typing import Any

from electron_webrtc_py.enums import EnumAwareJSONEncoder


def to_js(value: Any) -> str:
    return json.dumps(value, cls=EnumAwareJSONEncoder)


_CREATE_CONNECTION = Template("""
(function () {
  var id = $id
  var topic = 'pc:' + id
  var conns = window.conns = window.conns || {}
  var pc = conns[id] = new RTCPeerConnection($configuration)
  pc.dataChannels = {}
  pc.describeChannel = function (dc) {
    var channel = {}
    for (var key in dc) {
      if (typeof dc[key] === 'function' || dc[key] == null) continue
      channel[key] = dc[key]
    }
    return channel
  }
  pc.registerChannel = function (key, dc) {
    var dcTopic = 'dc:' + id + ':' + key
    pc.dataChannels[key] = dc
    dc.binaryType = 'arraybuffer'
    dc.onopen = function () {
      send(dcTopic, { type: 'open', channel: pc.describeChannel(dc) })
    }
    dc.onclose = function () {
      send(dcTopic, { type: 'close', readyState: dc.readyState })
    }
    dc.onerror = function (e) {
      var err = e.error || e
      send(dcTopic, { type: 'error', error: { name: err.name, message: err.message || String(err) } })
    }
    dc.onbufferedamountlow = function () {
      send(dcTopic, { type: 'bufferedamountlow', bufferedAmount: dc.bufferedAmount })
    }
    dc.onmessage = function (e) {
      if (typeof e.data === 'string') {
        send(dcTopic, { type: 'message', data: e.data })
        return
      }
      var bytes = new Uint8Array(e.data)
      var raw = ''
      for (var i = 0; i < bytes.length; i++) raw += String.fromCharCode(bytes[i])
      send(dcTopic, { type: 'message', data: btoa(raw), binary: true })
    }
  }
  pc.onaddstream = function (e) {
    send(topic, { type: 'addstream' })
  }
  pc.ondatachannel = function (e) {
    var key = String(e.channel.id)
    pc.registerChannel(key, e.channel)
    send(topic, { type: 'datachannel', key: key, channel: pc.describeChannel(e.channel) })
  }
  pc.onicecandidate = function (e) {
    var event = {}
    if (e.candidate) {
      event.candidate = {
        candidate: e.candidate.candidate,
        sdpMid: e.candidate.sdpMid,
        sdpMLineIndex: e.candidate.sdpMLineIndex,
        usernameFragment: e.candidate.usernameFragment
      }
    }
    var desc = pc.localDescription
    send(topic, {
      type: 'icecandidate',
      event: event,
      iceGatheringState: pc.iceGatheringState,
      offer: desc && desc.type === 'offer' ? desc.toJSON() : null
    })
  }
  pc.oniceconnectionstatechange = function () {
    send(topic, { type: 'iceconnectionstatechange', iceConnectionState: pc.iceConnectionState })
  }
  pc.onidentityresult = function (e) {
    send(topic, { type: 'identityresult', event: { assertion: e.assertion } })
  }
  pc.onidpassertionerror = function (e) {
    send(topic, { type: 'idpassertionerror', event: { idp: e.idp, loginUrl: e.loginUrl, protocol: e.protocol } })
  }
  pc.onidpvalidationerror = function (e) {
    send(topic, { type: 'idpvalidationerror', event: { idp: e.idp, loginUrl: e.loginUrl, protocol: e.protocol } })
  }
  pc.onnegotiationneeded = function () {
    send(topic, { type: 'negotiationneeded' })
  }
  pc.onremovestream = function (e) {
    send(topic, { type: 'removestream', event: { id: e.stream.id } })
  }
  pc.onsignalingstatechange = function () {
    send(topic, { type: 'signalingstatechange', signalingState: pc.signalingState })
  }
})()
""")

_REQUEST = Template("""
(function () {
  var pc = conns[$id]
  var reqId = $token
  var onSuccess = function (res) {
    if (res === undefined) res = null
    send(reqId, { result: res && res.toJSON ? res.toJSON() : res })
  }
  var onFailure = function (err) {
    send(reqId, { error: { name: err && err.name, message: err && err.message ? err.message : String(err) } })
  }
  $body
})()
""")

_STATEMENT = Template("""
(function () {
  var pc = conns[$id]
  $body
})()
""")

STATS_BODY = """
pc.getStats().then(function (report) {
  var output = []
  report.forEach(function (entry) {
    var item = { id: entry.id, timestamp: entry.timestamp, type: entry.type, stats: {} }
    Object.keys(entry).forEach(function (name) {
      if (name === 'id' || name === 'timestamp' || name === 'type') return
      item.stats[name] = entry[name]
    })
    output.push(item)
  })
  onSuccess(output)
}, onFailure)
"""

BOOTSTRAP = "window.conns = window.conns || {}"

CLOSE_BODY = "if (pc.signalingState !== 'closed') pc.close()"


def create_connection(pc_id: str, configuration: Any) -> str:
    return _CREATE_CONNECTION.substitute(id=to_js(pc_id), configuration=to_js(configuration))


def request(pc_id: str, token: str, body: str) -> str:
    """Wrap ``body`` so that it can report through ``onSuccess``/``onFailure``."""
    return _REQUEST.substitute(id=to_js(pc_id), token=to_js(token), body=body)


def statement(pc_id: str, body: str) -> str:
    return _STATEMENT.substitute(id=to_js(pc_id), body=body)


def call_method(name: str, *args: str) -> str:
    """A promise-returning ``pc`` method settled into the request callbacks."""
    return f"pc.{name}({', '.join(args)}).then(onSuccess, onFailure)"


def create_data_channel(key: str, label: str, options: Any) -> str:
    return (
        f"var dc = pc.createDataChannel({to_js(label)}, {to_js(options)})\n"
        f"  pc.registerChannel({to_js(key)}, dc)\n"
        f"  onSuccess(pc.describeChannel(dc))"
    )


def send_data(key: str, data: str, binary: bool) -> str:
    channel = f"pc.dataChannels[{to_js(key)}]"
    if not binary:
        return f"{channel}.send({to_js(data)})"
    return (
        f"var raw = atob({to_js(data)})\n"
        f"  var buf = new Uint8Array(raw.length)\n"
        f"  for (var i = 0; i < raw.length; i++) buf[i] = raw.charCodeAt(i)\n"
        f"  {channel}.send(buf.buffer)"
    )


def close_data_channel(key: str) -> str:
    return f"pc.dataChannels[{to_js(key)}].close()"
