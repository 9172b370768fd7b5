from __future__ import annotations

"""
Simple TCP REPL server for Chicken Knife.

Protocol: JSON per line over TCP.
- Request: {"cmd": "eval", "code": "2 3 + println"}
- Response: {"ok": true, "stack": [<rendered values>], "output": "<printed text>"}
  or {"ok": false, "incomplete": true|false, "error": <message>}

All clients share one Interpreter, so globals and the stack persist across
requests and connections. Client threads take a lock around every
parse/run; `exit` closes only the requesting connection.
"""

import io
import json
import socket
import threading
from typing import Tuple

from ck.errors import CkError, CkIncompleteInput
from ck.types.values import render
from ck.interpreter import Interpreter


HOST = "127.0.0.1"
PORT = 8765


class ReplServer:
    def __init__(self, host: str = HOST, port: int = PORT):
        self.host = host
        self.port = port
        self.output = io.StringIO()
        # Keep a single interpreter to maintain session state
        self.interp = Interpreter(stdin=io.StringIO(), stdout=self.output)
        self.lock = threading.Lock()

    def serve_forever(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen(5)
            while True:
                conn, addr = s.accept()
                threading.Thread(target=self._handle_client, args=(conn, addr), daemon=True).start()

    def handle_request(self, req: dict) -> Tuple[dict, bool]:
        """Answer one decoded request; the flag says whether to hang up."""
        if req.get("cmd") != "eval":
            return {"ok": False, "incomplete": False, "error": f"Unknown cmd: {req.get('cmd')}"}, False
        code = req.get("code", "")
        with self.lock:
            self.output.seek(0)
            self.output.truncate()
            try:
                self.interp.eval(code, final=False)
            except CkIncompleteInput as ex:
                return {"ok": False, "incomplete": True, "error": str(ex)}, False
            except CkError as ex:
                self.interp.parser.reset()
                return {"ok": False, "incomplete": False, "error": f"{type(ex).__name__}: {ex}"}, False
            except SystemExit as ex:
                return {"ok": True, "exit": ex.code, "output": self.output.getvalue(),
                        "stack": [render(v) for v in self.interp.stack]}, True
            return {"ok": True, "output": self.output.getvalue(),
                    "stack": [render(v) for v in self.interp.stack]}, False

    def _handle_client(self, conn: socket.socket, addr: Tuple[str, int]):
        with conn:
            buf = b""
            while True:
                data = conn.recv(4096)
                if not data:
                    break
                buf += data
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    line = line.strip()
                    if not line:
                        continue
                    hang_up = False
                    try:
                        req = json.loads(line.decode("utf-8"))
                        resp, hang_up = self.handle_request(req)
                    except (ValueError, AttributeError) as ex:
                        resp = {"ok": False, "incomplete": False, "error": f"Invalid request: {ex}"}
                    conn.sendall((json.dumps(resp) + "\n").encode("utf-8"))
                    if hang_up:
                        return


def main() -> None:
    ReplServer().serve_forever()


if __name__ == "__main__":
    main()
