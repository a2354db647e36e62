"""Browser client script served at ``<namespace>client.mjs``.

Rendered once per ``Broad`` from a kida template so the reconnect delay and
attempt budget follow ``BroadConfig``. The script finds its own URL through
``import.meta.url``: the event stream lives next to it, and its ``key``
query parameter selects which messages it reacts to.
"""

from kida import Environment

from afr.config import BroadConfig

CLIENT_TEMPLATE = """\
void function main() {
  const url = new URL(import.meta.url)
  const clientKey = url.searchParams.get('key') || undefined
  const delay = {{ reconnect_delay_ms }}
  const attempts = {{ reconnect_attempts }}
  let req
  let timer
  let remaining

  reinit()

  function reinit() {
    deinit()
    req = new EventSource(new URL('events', url))
    req.onopen = onOpen
    req.onmessage = onEventStreamMessage
    req.onerror = onError
  }

  function deinit() {
    if (req) {
      req.close()
      req = undefined
    }
    if (timer) {
      clearTimeout(timer)
      timer = undefined
    }
  }

  function onOpen() {remaining = attempts}

  function onError() {
    deinit()
    if (remaining === undefined || remaining-- > 0) scheduleReinit()
  }

  function scheduleReinit() {
    if (timer) clearTimeout(timer)
    timer = setTimeout(reinit, delay)
  }

  function onEventStreamMessage({data}) {
    onMessage(JSON.parse(data))
  }

  function onMessage(msg) {
    if (!msg) return

    const {type, key} = msg
    if (!equiv(key, clientKey)) return

    if (type === 'deinit') {
      reinit()
      return
    }

    if (type === 'change' || type === 'rename') onChange(msg)
  }

  function onChange(msg) {
    const ext = extName(msg.path)
    if (ext === '.css') {
      onStylesheetChanged(msg)
      return
    }
    if (ext === '.map') return
    window.location.reload()
  }

  function onStylesheetChanged({path}) {
    path = rootedPath(path)

    const prev = findSimilarStylesheets(path)
    if (!prev.length) return

    const link = document.createElement('link')
    link.rel = 'stylesheet'
    link.href = salted(path)
    link.onerror = link.remove
    link.onload = linkOnLoad
    last(prev).insertAdjacentElement('afterend', link)
  }

  function findSimilarStylesheets(pathname) {
    return [...document.head.querySelectorAll('link[rel=stylesheet]')].filter(node => (
      new URL(node.href).pathname === pathname
    ))
  }

  function linkOnLoad() {
    this.onerror = null
    this.onload = null
    const links = findSimilarStylesheets(new URL(this.href).pathname)
    for (const node of links.slice(0, links.length - 1)) node.remove()
  }

  function rootedPath(path) {
    path = path.replace(/^[/]*/g, '')
    const base = document.head.querySelector('base')
    return base && base.href ? path : '/' + path
  }

  function salted(str) {
    return str + '?' + String(Math.random()).replace(/\\d*\\./, '').slice(0, 6)
  }

  function extName(path = '') {
    const match = path.match(/.([.][^.]+)$/)
    return !match ? '' : match[1]
  }

  function equiv(a, b) {
    return (a == null && b == null) || Object.is(a, b)
  }

  function last(list) {return list[list.length - 1]}
}()
"""


def render_client_script(config: BroadConfig) -> str:
    """Render the client script for *config*."""
    env = Environment(autoescape=False)
    template = env.from_string(CLIENT_TEMPLATE)
    return template.render({
        "reconnect_delay_ms": int(config.reconnect_delay_ms),
        "reconnect_attempts": int(config.reconnect_attempts),
    })
