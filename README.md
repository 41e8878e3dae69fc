# webgallery

A set of small, self-contained web services built on aiohttp. Each one shows
a common server pattern. You can run it from the command line or build it
into your own program from Python.

## What is included

- **WebSocket chat** (`webgallery.ws_chat`): a room-based chat over
  WebSockets at `/ws/`. The root path `/` redirects to
  `/static/websocket.html`, and files under `/static/` are served from a
  static directory. The chat is run by `ChatServer`
  (`webgallery.chat_server`), which gives out session ids, keeps track of
  rooms (starting with `Main`) and passes messages between the sessions in
  a room. Clients can send these commands:
  - `/list` lists the rooms.
  - `/join <room>` moves the client to a room.
  - `/name <name>` sets the client's name.
  - Any other text is sent as a chat message.
- **Broker chat** (`webgallery.broker_chat`): the same chat built on
  `RoomServer` (`webgallery.broker_server`). Here each room keeps its own
  clients, and a client that fails to take a message is dropped from the
  room. Joining a room announces `<name> joined <room>`, and `/name` replies
  with `name changed to: <name>`.
- **Echo WebSocket** (`webgallery.echo_ws`): sends text and binary frames
  back to the sender. It pings the client every 5 seconds and drops a
  client that stays silent for more than 10 seconds (see `Heartbeat`).
  Other paths are served from a static directory, and a directory request
  returns its `index.html`.
- **WebSocket client** (`webgallery.ws_client`): a console client. It sends
  each line typed on stdin as a text frame and prints the text frames it
  receives as `Server: "..."`.
- **TCP + WebSocket chat** (`webgallery.tcp_chat`, `webgallery.tcp_session`,
  `webgallery.tcp_client`): a single `ChatServer` that takes WebSocket
  clients over HTTP and raw TCP clients at the same time (TCP port 12345 by
  default).
  - Each TCP frame is a two-byte big-endian length followed by a JSON
    object such as `{"cmd": "Join", "data": "room"}`.
  - `ChatCodec` (server side) and `ClientChatCodec` (client side) in
    `webgallery.codec` handle the framing.
  - A TCP client must send a `Ping` at least every 10 seconds or it is
    disconnected.
- **Simple apps** (`webgallery.simple_apps`): four small servers, each a
  subcommand:
  - `state`: counts requests and answers `Num of requests: N`.
  - `static`: serves files from a directory.
  - `tls`: a TLS server that redirects `/` to `/index.html`, which answers
    `Welcome!`. It needs `cert.pem` and `key.pem`.
  - `unix`: answers `Hello world!` on a Unix socket, by default at
    `/tmp/actix-uds.socket`.
- **CORS** (`webgallery.cors`): `POST /user/info` echoes a JSON sign-up form
  (`username`, `email`, `password`, `confirm_password`) back to the caller.
  It sits behind a `CorsPolicy`, which by default allows the origin
  `http://localhost:8080`, the methods `GET` and `POST`, and a max-age of
  3600.
- **Templates** (`webgallery.templates`): Jinja2 pages read from a template
  directory. There are two subcommands:
  - `query` renders `user.html` when a `name` query value is given and
    `index.html` when it is not.
  - `path` renders `index.html` at `/` and `user.html` at `/{user}/{data}`.

  A template that fails to render gives a 500 response with the text
  `Template error`.
- **Greeting page** (`webgallery.yarte_app`): a built-in page with three
  cases:
  - `?name=...&lastname=...` greets the person.
  - No `name` shows a sign-in form.
  - A `name` without a `lastname` returns a 500 error.
- **Account records** (`webgallery.auth_models`, `webgallery.email_service`):
  - `User`, `Invitation` and `SlimUser` records.
  - A SQLite-backed `Database` for storing and finding them.
  - `send_invitation`, which mails an HTML invitation over SMTP. It needs
    the environment variable `SENDING_EMAIL_ADDRESS`. `SMTP_HOST`,
    `SMTP_PORT`, `SMTP_USER` and `SMTP_PASSWORD` are optional.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running the servers

Each service has its own command. Pass `--help` to any of them to see its
options.

```
webgallery-ws-chat [--host HOST] [--port PORT] [--static DIR]
webgallery-broker-chat [--host HOST] [--port PORT] [--static DIR]
webgallery-echo-ws [--host HOST] [--port PORT] [--static DIR]
webgallery-ws-client [URL]
webgallery-tcp-chat [--host HOST] [--port PORT] [--tcp-port PORT] [--static DIR]
webgallery-tcp-client [--host HOST] [--port PORT]
webgallery-simple {state,static,tls,unix} ...
webgallery-cors [--host HOST] [--port PORT]
webgallery-templates {query,path} ...
webgallery-yarte [--host HOST] [--port PORT]
```

## Using the pieces from Python

Every HTTP service has an application factory (`create_app`,
`create_state_app`, `create_query_app` and so on), so you can run it with
aiohttp or mount it in a larger application:

```python
from aiohttp import web

from webgallery.yarte_app import create_app

web.run_app(create_app(), host="127.0.0.1", port=8080)
```

The chat logic has no network code of its own, so you can drive a
`ChatServer` directly:

1. Call `connect` with a callable that receives messages. It returns the
   session id.
2. Use `join`, `client_message` and `list_rooms` with that id.
3. Call `disconnect` when the session ends.

A recipient that raises `ConnectionError` is skipped.

## What the package does not do

There is no authentication server. The account records, their SQLite
storage and the invitation mail are included. Password hashing, login
tokens, identity cookies and the HTTP endpoints for inviting, registering
and logging in are not.