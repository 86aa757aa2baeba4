"""
tests/core/test_action_dispatcher.py

Dispatcher pipeline tests: gate, lookup, access check, hooks, handler, forward.
"""
import pytest

from core.actions import CallerIdentity, DispatchContext, Redirect, ResponseSent
from core.actions.dispatcher import ACTION_TOPIC, FORWARD_REASON, FORWARD_TOPIC, sanitize_forwarder
from core.actions.messages import DEFAULT_CATALOG

SITE = "http://site.example/"
SID = "session-1"
SALT = "salt-1"

USER = CallerIdentity(user_id=7)
ADMIN = CallerIdentity(user_id=1, is_admin=True)


def make_context(system, identity=USER, with_token=True, **kwargs):
    context = DispatchContext(identity=identity, session_id=SID, session_salt=SALT, **kwargs)
    if with_token:
        pair = system.generate_token(SID, SALT)
        context.token = pair.token
        context.timestamp = str(pair.timestamp)
    return context


class Recorder:
    """Handler that records the contexts it was called with"""

    def __init__(self):
        self.calls = []

    def __call__(self, context):
        self.calls.append(context)


@pytest.fixture
def handler():
    return Recorder()


class TestSanitizeForwarder:

    @pytest.mark.parametrize("raw,expected", [
        ("http://site.example/@path/", "path/"),
        ("http://site.example/blog/view/1", "blog/view/1"),
        ("/dashboard", "dashboard"),
        ("//dashboard", "/dashboard"),
        ("http://evil.example/x", "evil.example/x"),
        ("user@evil.example", "userevil.example"),
        ("", ""),
        (None, ""),
        (123, ""),
        (["a", "b"], ""),
    ])
    def test_cases(self, raw, expected):
        assert sanitize_forwarder(raw, SITE) == expected

    def test_without_site_url(self):
        assert sanitize_forwarder("http://host/a") == "host/a"


class TestDispatch:
    """Test suite for Dispatcher.dispatch"""

    def test_valid_call_runs_handler_and_forwards(self, system, handler):
        system.register_action("blog/save", handler=handler)
        context = make_context(system)

        result = system.perform_action("blog/save", context, forwarder="blog/view/1")

        assert handler.calls == [context]
        assert result == Redirect(url=f"{SITE}blog/view/1")
        assert context.messages.count() == 0

    def test_empty_forwarder_goes_to_site_root(self, system, handler):
        system.register_action("blog/save", handler=handler)
        result = system.perform_action("blog/save", make_context(system))
        assert result == Redirect(url=SITE)

    def test_forwarder_is_sanitized(self, system, handler):
        system.register_action("blog/save", handler=handler)
        context = make_context(system, forwarder="http://site.example/@path/")

        result = system.perform_action("blog/save", context)

        assert context.forwarder == "path/"
        assert result.url == f"{SITE}path/"

    def test_foreign_host_stays_on_site(self, system, handler):
        system.register_action("blog/save", handler=handler)
        result = system.perform_action("blog/save", make_context(system), forwarder="http://evil.example/")
        assert result.url.startswith(SITE)

    def test_trailing_slash_name(self, system, handler):
        system.register_action("foo", handler=handler)
        context = make_context(system)

        system.perform_action("foo/", context)

        assert context.action == "foo"
        assert len(handler.calls) == 1

    def test_undefined_action(self, system):
        context = make_context(system)

        result = system.perform_action("missing", context, forwarder="here")

        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:undefined"] % "missing"]
        assert result == Redirect(url=f"{SITE}here")

    def test_anonymous_caller_on_private_action(self, system, handler):
        system.register_action("blog/save", handler=handler)
        context = make_context(system, identity=CallerIdentity.anonymous())

        system.perform_action("blog/save", context)

        assert handler.calls == []
        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:logged_out"]]

    def test_anonymous_caller_on_public_action(self, system, handler):
        system.register_action("contact", public=True, handler=handler)
        system.perform_action("contact", make_context(system, identity=CallerIdentity.anonymous()))
        assert len(handler.calls) == 1

    def test_admin_only_rejects_user(self, system, handler):
        system.register_action("admin/flush", admin_only=True, handler=handler)
        context = make_context(system)

        system.perform_action("admin/flush", context)

        assert handler.calls == []
        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:unauthorized"]]

    def test_admin_only_anonymous_gets_unauthorized(self, system, handler):
        system.register_action("admin/flush", admin_only=True, handler=handler)
        context = make_context(system, identity=CallerIdentity.anonymous())

        system.perform_action("admin/flush", context)

        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:unauthorized"]]

    def test_admin_only_allows_admin(self, system, handler):
        system.register_action("admin/flush", admin_only=True, handler=handler)
        system.perform_action("admin/flush", make_context(system, identity=ADMIN))
        assert len(handler.calls) == 1

    def test_gate_failure_stops_before_hooks(self, system, handler):
        hook_calls = []
        system.register_action("blog/save", handler=handler)
        system.hooks.register(ACTION_TOPIC, "blog/save", lambda h, r: hook_calls.append(h))
        context = make_context(system, with_token=False)

        result = system.perform_action("blog/save", context, forwarder="blog/view/1")

        assert handler.calls == []
        assert hook_calls == []
        assert result == Redirect(url=SITE)
        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["actiongate:missing_fields"]]

    def test_exempt_action_without_token(self, system, handler):
        system.register_action("login", public=True, handler=handler)
        context = make_context(system, identity=CallerIdentity.anonymous(), with_token=False)

        system.perform_action("login", context)

        assert len(handler.calls) == 1
        assert context.messages.count() == 0

    def test_custom_exemptions(self, secrets_provider, clock, handler):
        from core.actions import ActionSystem

        system = ActionSystem(secrets_provider, site_url=SITE, exemptions=["ping"], clock=clock)
        system.register_action("ping", public=True, handler=handler)
        system.register_action("login", public=True, handler=handler)

        system.perform_action("ping", make_context(system, with_token=False))
        system.perform_action("login", make_context(system, with_token=False))

        assert len(handler.calls) == 1

    def test_action_hook_veto_is_silent(self, system, handler):
        system.register_action("blog/save", handler=handler)
        system.hooks.register(ACTION_TOPIC, "blog/save", lambda h, r: False)
        context = make_context(system)

        result = system.perform_action("blog/save", context, forwarder="back")

        assert handler.calls == []
        assert context.messages.count() == 0
        assert result == Redirect(url=f"{SITE}back")

    def test_action_hook_receives_context(self, system, handler):
        seen = []
        system.register_action("blog/save", handler=handler)
        system.hooks.register(ACTION_TOPIC, "blog/save", lambda h, r: seen.append(h.payload))
        context = make_context(system)

        system.perform_action("blog/save", context)

        assert seen == [context]
        assert len(handler.calls) == 1

    def test_missing_handler(self, system):
        system.register_action("broken", handler_ref="no_such_package.no_such_module")
        context = make_context(system)

        result = system.perform_action("broken", context)

        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:not_found"] % "broken"]
        assert isinstance(result, Redirect)

    def test_relative_handler_ref(self, system):
        system.register_action("broken", handler_ref=".relative")
        context = make_context(system)

        result = system.perform_action("broken", context)

        assert context.messages.peek()["errors"] == [DEFAULT_CATALOG["action:not_found"] % "broken"]
        assert isinstance(result, Redirect)

    def test_handler_exception_propagates(self, system):
        def broken(context):
            raise RuntimeError("handler failed")

        system.register_action("broken", handler=broken)
        with pytest.raises(RuntimeError):
            system.perform_action("broken", make_context(system))

    def test_handler_messages_survive(self, system):
        def handler(context):
            context.messages.add_message("saved")

        system.register_action("blog/save", handler=handler)
        context = make_context(system)

        system.perform_action("blog/save", context)

        assert context.messages.peek()["messages"] == ["saved"]


class TestForward:
    """Test suite for Dispatcher.forward"""

    def test_forward_hook_rewrites_url(self, system, handler):
        system.register_action("blog/save", handler=handler)
        system.hooks.register(FORWARD_TOPIC, FORWARD_REASON, lambda h, r: f"{SITE}elsewhere")

        result = system.perform_action("blog/save", make_context(system), forwarder="back")

        assert result == Redirect(url=f"{SITE}elsewhere")

    def test_forward_hook_payload(self, system, handler):
        seen = []
        system.register_action("blog/save", handler=handler)
        system.hooks.register(FORWARD_TOPIC, FORWARD_REASON, lambda h, r: seen.append(h.payload))
        context = make_context(system, current_url=f"{SITE}action/blog/save")

        system.perform_action("blog/save", context, forwarder="back")

        assert seen[0]["current_url"] == f"{SITE}action/blog/save"
        assert seen[0]["forward_url"] == f"{SITE}back"
        assert seen[0]["context"] is context

    def test_forward_hook_can_answer(self, system, handler):
        sent = ResponseSent(body="done", media_type="text/plain")
        system.register_action("blog/save", handler=handler)
        system.hooks.register(FORWARD_TOPIC, FORWARD_REASON, lambda h, r: sent)

        assert system.perform_action("blog/save", make_context(system)) is sent

    def test_forward_runs_after_gate_failure(self, system):
        seen = []
        system.hooks.register(FORWARD_TOPIC, FORWARD_REASON, lambda h, r: seen.append(h.payload["forward_url"]))
        system.perform_action("blog/save", make_context(system, with_token=False))
        assert seen == [SITE]

    def test_absolute_url(self, system):
        dispatcher = system.dispatcher
        assert dispatcher.absolute_url(f"{SITE}a/b") == f"{SITE}a/b"
        assert dispatcher.absolute_url("/a/b") == f"{SITE}a/b"
        assert dispatcher.absolute_url("") == SITE

    def test_site_url_gets_trailing_slash(self, secrets_provider):
        from core.actions import ActionSystem

        system = ActionSystem(secrets_provider, site_url="http://site.example")
        assert system.dispatcher.site_url == SITE
