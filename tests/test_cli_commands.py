import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from typer.testing import CliRunner

from crm_cli.main import app
from crm_cli.core import session as session_store
from crm_cli.core.api import api_check_session
from crm_cli.core.errors import WordPressApiError
from crm_cli.core.sites import SiteContext

runner = CliRunner()

SITES = [
    {"id": "main", "name": "Main", "url": "https://main.example", "is_default": True},
    {"id": "clinic", "name": "Clinic", "url": "https://clinic.example"},
]

LEADS = [
    {"id": "1", "name": "Ana", "status": "pending", "source": "form", "assigned_to": "7"},
    {"id": "2", "name": "Bruno", "status": "won", "source": "facebook", "assigned_to": "8"},
    {"id": "3", "name": "Carla", "status": "won", "source": "form", "assigned_to": "7"},
]


class TestAuthCommands(unittest.TestCase):

    @patch("crm_cli.auth.commands.save_session")
    @patch("crm_cli.auth.commands.api_login")
    @patch("crm_cli.auth.commands.getpass.getpass")
    @patch("crm_cli.auth.commands.is_logged_in")
    def test_login_success(self, mock_logged_in, mock_getpass, mock_login, mock_save):
        mock_logged_in.return_value = False
        mock_getpass.return_value = "s3cret"
        mock_login.return_value = {"token": "tok", "profile": {"id": 1, "username": "root", "role": "super_admin"}}

        result = runner.invoke(app, ["auth", "login", "-u", "root"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("Login successful", result.stdout)
        mock_login.assert_called_once_with("root", "s3cret")
        mock_save.assert_called_once_with("tok", {"id": 1, "username": "root", "role": "super_admin"})

    @patch("crm_cli.auth.commands.api_login")
    @patch("crm_cli.auth.commands.is_logged_in")
    def test_login_refused_while_logged_in(self, mock_logged_in, mock_login):
        mock_logged_in.return_value = True
        result = runner.invoke(app, ["auth", "login", "-u", "root"])
        self.assertEqual(result.exit_code, 1)
        mock_login.assert_not_called()

    @patch("crm_cli.auth.commands.save_session")
    @patch("crm_cli.auth.commands.api_login")
    @patch("crm_cli.auth.commands.getpass.getpass")
    @patch("crm_cli.auth.commands.is_logged_in")
    def test_login_failure(self, mock_logged_in, mock_getpass, mock_login, mock_save):
        mock_logged_in.return_value = False
        mock_getpass.return_value = "wrong"
        mock_login.return_value = None

        result = runner.invoke(app, ["auth", "login", "-u", "root"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Login failed", result.stdout)
        mock_save.assert_not_called()

    @patch("crm_cli.auth.commands.clear_session")
    @patch("crm_cli.auth.commands.api_check_session")
    @patch("crm_cli.auth.commands.load_token")
    def test_check_invalidated_session_clears_token(self, mock_token, mock_check, mock_clear):
        mock_token.return_value = "tok"
        mock_check.return_value = "invalidated"

        result = runner.invoke(app, ["auth", "check"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("invalidated", result.stdout)
        mock_clear.assert_called_once()

    @patch("crm_cli.auth.commands.clear_session")
    @patch("crm_cli.auth.commands.api_check_session")
    @patch("crm_cli.auth.commands.load_token")
    def test_check_valid_session(self, mock_token, mock_check, mock_clear):
        mock_token.return_value = "tok"
        mock_check.return_value = "valid"

        result = runner.invoke(app, ["auth", "check"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Session is valid", result.stdout)
        mock_clear.assert_not_called()


class TestSiteCommands(unittest.TestCase):

    @patch("crm_cli.sites.commands.persist_site_context")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_use_switches_and_persists(self, mock_context, mock_persist):
        context = SiteContext(SITES, "main")
        mock_context.return_value = context

        result = runner.invoke(app, ["sites", "use", "clinic"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("https://clinic.example", result.stdout)
        mock_persist.assert_called_once_with(context)
        self.assertEqual(context.current_site_id, "clinic")

    @patch("crm_cli.sites.commands.persist_site_context")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_use_unknown_site(self, mock_context, mock_persist):
        mock_context.return_value = SiteContext(SITES, "main")
        result = runner.invoke(app, ["sites", "use", "nowhere"])
        self.assertEqual(result.exit_code, 1)
        mock_persist.assert_not_called()

    @patch("crm_cli.sites.commands.active_profile", return_value=None)
    @patch("crm_cli.sites.commands.load_site_context")
    def test_list_marks_current_site(self, mock_context, mock_profile):
        mock_context.return_value = SiteContext(SITES, "clinic")
        result = runner.invoke(app, ["sites", "list"])
        self.assertEqual(result.exit_code, 0)
        lines = result.stdout.splitlines()
        self.assertTrue(any(line.startswith("* clinic") for line in lines))
        self.assertTrue(any(line.startswith("  main") for line in lines))

    @patch("crm_cli.sites.commands.active_profile")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_team_member_lists_only_current_site(self, mock_context, mock_profile):
        mock_context.return_value = SiteContext(SITES, "clinic")
        mock_profile.return_value = {"id": "7", "role": "client"}
        result = runner.invoke(app, ["sites", "list"])
        self.assertIn("clinic", result.stdout)
        self.assertNotIn("main", result.stdout)

    @patch("crm_cli.sites.commands.persist_site_context")
    @patch("crm_cli.sites.commands.load_site_context")
    @patch("crm_cli.sites.commands.api_list_sites")
    @patch("crm_cli.sites.commands.load_token")
    def test_sync_replaces_cache(self, mock_token, mock_list, mock_context, mock_persist):
        mock_token.return_value = "tok"
        mock_list.return_value = SITES
        context = SiteContext()
        mock_context.return_value = context

        result = runner.invoke(app, ["sites", "sync"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Synced 2 site(s)", result.stdout)
        self.assertEqual([s["id"] for s in context.sites], ["main", "clinic"])
        mock_persist.assert_called_once_with(context)

    @patch("crm_cli.sites.commands.save_site_session")
    @patch("crm_cli.sites.commands.api_get_user_sites")
    @patch("crm_cli.sites.commands.create_wordpress_api")
    @patch("crm_cli.sites.commands.getpass.getpass")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_site_login_uses_assigned_role(self, mock_context, mock_getpass, mock_create, mock_user_sites, mock_save):
        mock_context.return_value = SiteContext(SITES, "clinic")
        mock_getpass.return_value = "app-pw"
        mock_create.return_value.get_current_user.return_value = {"id": 7, "roles": ["author"]}
        mock_user_sites.return_value = [
            {"site_id": "main", "app_role": "client"},
            {"site_id": "clinic", "app_role": "seo_person"},
        ]

        result = runner.invoke(app, ["sites", "login", "-u", "writer"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        args, _ = mock_create.call_args
        self.assertEqual(args[0], "https://clinic.example/wp-json")
        mock_save.assert_called_once_with("clinic", {
            "username": "writer",
            "app_password": "app-pw",
            "user_id": "7",
            "role": "seo_person",
        })

    @patch("crm_cli.sites.commands.save_site_session")
    @patch("crm_cli.sites.commands.api_get_user_sites")
    @patch("crm_cli.sites.commands.create_wordpress_api")
    @patch("crm_cli.sites.commands.getpass.getpass")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_site_login_maps_wordpress_administrator(self, mock_context, mock_getpass, mock_create, mock_user_sites, mock_save):
        mock_context.return_value = SiteContext(SITES, "main")
        mock_getpass.return_value = "app-pw"
        mock_create.return_value.get_current_user.return_value = {"id": 1, "roles": ["administrator"]}
        mock_user_sites.return_value = None

        result = runner.invoke(app, ["sites", "login", "-u", "boss"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertEqual(mock_save.call_args[0][1]["role"], "admin")

    @patch("crm_cli.sites.commands.save_site_session")
    @patch("crm_cli.sites.commands.create_wordpress_api")
    @patch("crm_cli.sites.commands.getpass.getpass")
    @patch("crm_cli.sites.commands.load_site_context")
    def test_site_login_rejected_by_wordpress(self, mock_context, mock_getpass, mock_create, mock_save):
        mock_context.return_value = SiteContext(SITES, "main")
        mock_getpass.return_value = "bad"
        mock_create.return_value.get_current_user.side_effect = WordPressApiError("Failed to fetch current user: 401", status_code=401)

        result = runner.invoke(app, ["sites", "login", "-u", "boss"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Site login failed", result.stdout)
        mock_save.assert_not_called()


class TestLeadCommands(unittest.TestCase):

    def setUp(self):
        self.api = MagicMock()
        self.api.get_all.return_value = LEADS
        patchers = [
            patch("crm_cli.leads.commands.load_site_context", return_value=SiteContext(SITES, "main")),
            patch("crm_cli.leads.commands.load_legacy_site_url", return_value=None),
            patch("crm_cli.leads.commands.create_leads_api", return_value=self.api),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

    @patch("crm_cli.leads.commands.active_profile")
    def test_team_member_sees_assigned_leads(self, mock_profile):
        mock_profile.return_value = {"id": "7", "role": "sales_person"}

        result = runner.invoke(app, ["leads", "list"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("Ana", result.stdout)
        self.assertIn("Carla", result.stdout)
        self.assertNotIn("Bruno", result.stdout)

    @patch("crm_cli.leads.commands.active_profile")
    def test_manager_sees_all_leads(self, mock_profile):
        mock_profile.return_value = {"id": "7", "role": "lead_manager"}
        result = runner.invoke(app, ["leads", "list"])
        for name in ["Ana", "Bruno", "Carla"]:
            self.assertIn(name, result.stdout)

    @patch("crm_cli.leads.commands.active_profile")
    def test_status_filter(self, mock_profile):
        mock_profile.return_value = None
        result = runner.invoke(app, ["leads", "list", "--status", "won"])
        self.assertNotIn("Ana", result.stdout)
        self.assertIn("Bruno", result.stdout)
        self.assertIn("Carla", result.stdout)

    @patch("crm_cli.leads.commands.active_profile")
    def test_hidden_lead_is_not_shown(self, mock_profile):
        mock_profile.return_value = {"id": "7", "role": "client"}
        self.api.get.return_value = LEADS[1]

        result = runner.invoke(app, ["leads", "show", "2"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Lead not found", result.stdout)

    @patch("crm_cli.leads.commands.active_profile")
    def test_api_error_exits(self, mock_profile):
        mock_profile.return_value = None
        self.api.get_all.side_effect = WordPressApiError("Failed to fetch leads: 500 Server Error", status_code=500)
        result = runner.invoke(app, ["leads", "list"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed to fetch leads", result.stdout)


class TestPostCommands(unittest.TestCase):

    def setUp(self):
        self.api = MagicMock()
        self.api.get_all_posts.return_value = [
            {"id": 10, "status": "publish", "author": 7, "title": {"rendered": "Mine"}},
            {"id": 11, "status": "draft", "author": 9, "title": {"rendered": "Theirs"}},
        ]
        self.profile = {"id": "7", "role": "seo_person"}
        open_api = MagicMock()
        open_api.return_value.__enter__.return_value = self.api
        patchers = [
            patch("crm_cli.posts.commands.load_site_context", return_value=SiteContext(SITES, "main")),
            patch("crm_cli.posts.commands.open_wordpress_api", open_api),
            patch("crm_cli.posts.commands.active_profile", side_effect=lambda context: self.profile),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)
        log = patch("crm_cli.posts.commands.log_site_activity")
        self.mock_log = log.start()
        self.addCleanup(log.stop)

    def test_team_member_sees_own_posts(self):
        result = runner.invoke(app, ["posts", "list"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("Mine", result.stdout)
        self.assertNotIn("Theirs", result.stdout)

    def test_show_hides_other_authors_posts(self):
        self.api.get_post.return_value = {"id": 11, "author": 9, "title": {"rendered": "Theirs"}}
        result = runner.invoke(app, ["posts", "show", "11"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Post not found", result.stdout)

    def test_show_own_post(self):
        self.api.get_post.return_value = {"id": 10, "author": 7, "status": "publish",
                                          "title": {"rendered": "Mine"}, "content": {"rendered": "<p>Body</p>"}}
        result = runner.invoke(app, ["posts", "show", "10"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("<p>Body</p>", result.stdout)

    def test_create_draft(self):
        self.api.create_post.return_value = {"id": 12}
        result = runner.invoke(app, ["posts", "create", "--title", "Hello", "--content", "<p>Hi</p>"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.create_post.assert_called_once_with({"title": "Hello", "content": "<p>Hi</p>", "status": "draft"})
        self.assertEqual(self.mock_log.call_args[0][1], "Blog Created")

    def test_create_rejects_unknown_status(self):
        result = runner.invoke(app, ["posts", "create", "--title", "Hello", "--status", "live"])
        self.assertEqual(result.exit_code, 1)
        self.api.create_post.assert_not_called()

    def test_update_sends_only_given_fields(self):
        self.api.get_post.return_value = {"id": 10, "author": 7}
        result = runner.invoke(app, ["posts", "update", "10", "--status", "publish"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.update_post.assert_called_once_with(10, {"status": "publish"})

    def test_delete_moves_to_trash_by_default(self):
        self.api.get_post.return_value = {"id": 10, "author": 7}
        result = runner.invoke(app, ["posts", "delete", "10", "--force"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.delete_post.assert_called_once_with(10, force=False)
        self.assertIn("trash", result.stdout)

    def test_team_member_cannot_delete_others_post(self):
        self.api.get_post.return_value = {"id": 11, "author": 9}
        result = runner.invoke(app, ["posts", "delete", "11", "--permanent", "--force"])
        self.assertEqual(result.exit_code, 1)
        self.api.delete_post.assert_not_called()

    def test_categories(self):
        self.api.get_categories.return_value = [{"id": 1, "name": "News", "count": 3}]
        result = runner.invoke(app, ["posts", "categories"])
        self.assertIn("News (3)", result.stdout)

    def test_site_error_exits_cleanly(self):
        self.api.get_tags.side_effect = WordPressApiError("Failed to fetch tags: 401 Unauthorized", status_code=401)
        result = runner.invoke(app, ["posts", "tags"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed to fetch tags", result.stdout)


class TestLeadMutations(unittest.TestCase):

    def setUp(self):
        self.api = MagicMock()
        self.api.get.return_value = {"id": "1", "assigned_to": "7", "status": "pending"}
        self.profile = {"id": "7", "role": "sales_person"}
        patchers = [
            patch("crm_cli.leads.commands.load_site_context", return_value=SiteContext(SITES, "main")),
            patch("crm_cli.leads.commands.load_legacy_site_url", return_value=None),
            patch("crm_cli.leads.commands.create_leads_api", return_value=self.api),
            patch("crm_cli.leads.commands.active_profile", side_effect=lambda context: self.profile),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)
        log = patch("crm_cli.leads.commands.log_site_activity")
        self.mock_log = log.start()
        self.addCleanup(log.stop)

    def test_update_own_lead(self):
        result = runner.invoke(app, ["leads", "update", "1", "--status", "contacted", "--follow-up-date", "2026-11-02"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.update.assert_called_once_with("1", {"status": "contacted", "follow_up_date": "2026-11-02"})
        action, details = self.mock_log.call_args[0][1:]
        self.assertEqual(action, "Lead Updated")
        self.assertIn("status", details)

    def test_update_without_fields(self):
        result = runner.invoke(app, ["leads", "update", "1"])
        self.assertEqual(result.exit_code, 1)
        self.api.update.assert_not_called()

    def test_team_member_cannot_update_others_lead(self):
        self.api.get.return_value = {"id": "2", "assigned_to": "8"}
        result = runner.invoke(app, ["leads", "update", "2", "--status", "won"])
        self.assertEqual(result.exit_code, 1)
        self.api.update.assert_not_called()

    def test_team_member_cannot_assign(self):
        result = runner.invoke(app, ["leads", "assign", "1", "8"])
        self.assertEqual(result.exit_code, 1)
        self.api.update.assert_not_called()

    def test_manager_assigns(self):
        self.profile = {"id": "3", "role": "lead_manager"}
        result = runner.invoke(app, ["leads", "assign", "1", "8"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.update.assert_called_once_with("1", {"assigned_to": "8"})
        self.assertEqual(self.mock_log.call_args[0][1], "Lead Assigned")

    def test_manager_deletes(self):
        self.profile = {"id": "3", "role": "admin"}
        result = runner.invoke(app, ["leads", "delete", "1", "--force"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.api.delete.assert_called_once_with("1")

    def test_add_reports_duplicates(self):
        self.api.create.return_value = {"status": "duplicate", "message": "A lead with this email already exists"}
        result = runner.invoke(app, ["leads", "add", "ana@example.com", "--name", "Ana"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("already exists", result.stdout)
        self.mock_log.assert_not_called()

    def test_add(self):
        self.api.create.return_value = {"status": "success", "lead_id": 31}
        result = runner.invoke(app, ["leads", "add", "ana@example.com", "--name", "Ana"])
        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("Lead 31 created", result.stdout)
        self.assertEqual(self.api.create.call_args[0][0]["email"], "ana@example.com")


class TestUnreachableSite(unittest.TestCase):

    @patch("crm_cli.leads.commands.active_profile", return_value=None)
    @patch("crm_cli.leads.commands.load_legacy_site_url", return_value=None)
    @patch("crm_cli.leads.commands.load_site_context")
    def test_connection_error_becomes_clean_exit(self, mock_context, mock_legacy, mock_profile):
        mock_context.return_value = SiteContext([{"id": "down", "url": "http://127.0.0.1:1"}], "down")
        with patch("requests.Session.request", side_effect=requests.ConnectionError("Connection refused")):
            result = runner.invoke(app, ["leads", "list"])

        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("Failed to fetch leads", result.stdout)


class TestActivityCommands(unittest.TestCase):

    @patch("crm_cli.activity.commands.open_wordpress_api")
    @patch("crm_cli.activity.commands.load_site_context")
    def test_site_log(self, mock_context, mock_open):
        mock_context.return_value = SiteContext(SITES, "main")
        api = mock_open.return_value.__enter__.return_value
        api.get_activity_logs.return_value = [
            {"timestamp": "2026-10-01 10:00:00", "username": "ana", "action": "Lead Updated", "details": "Lead 1"},
        ]

        result = runner.invoke(app, ["activity", "site", "--page", "2"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        api.get_activity_logs.assert_called_once_with(2)
        self.assertIn("Lead Updated: Lead 1", result.stdout)

    @patch("crm_cli.activity.commands.api_get_activity")
    @patch("crm_cli.activity.commands.load_token")
    def test_server_log(self, mock_token, mock_activity):
        mock_token.return_value = "tok"
        mock_activity.return_value = [{"timestamp": "t", "actor_id": 1, "action": "POST /login 200 OK", "details": ""}]
        result = runner.invoke(app, ["activity", "server", "--limit", "5"])
        self.assertEqual(result.exit_code, 0)
        mock_activity.assert_called_once_with("tok", 5)
        self.assertIn("POST /login 200 OK", result.stdout)

    @patch("crm_cli.activity.commands.api_verify_activity")
    @patch("crm_cli.activity.commands.load_token")
    def test_broken_chain_fails(self, mock_token, mock_verify):
        mock_token.return_value = "tok"
        mock_verify.return_value = False
        result = runner.invoke(app, ["activity", "verify"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("BROKEN", result.stdout)


class TestSiteRecordCommands(unittest.TestCase):

    @patch("crm_cli.sites.commands.api_get_site")
    @patch("crm_cli.sites.commands.load_token")
    def test_show_masks_password(self, mock_token, mock_get):
        mock_token.return_value = "tok"
        mock_get.return_value = {"id": "main", "name": "Main", "url": "https://main.example", "app_password": "secret"}
        result = runner.invoke(app, ["sites", "show", "main"])
        self.assertEqual(result.exit_code, 0)
        self.assertNotIn("secret", result.stdout)
        self.assertIn("(set)", result.stdout)

    @patch("crm_cli.sites.commands.persist_site_context")
    @patch("crm_cli.sites.commands.load_site_context")
    @patch("crm_cli.sites.commands.api_update_site")
    @patch("crm_cli.sites.commands.load_token")
    def test_update_sends_partial_payload_and_refreshes_cache(self, mock_token, mock_update, mock_context, mock_persist):
        mock_token.return_value = "tok"
        context = SiteContext(SITES, "main")
        mock_context.return_value = context
        mock_update.return_value = {**SITES[1], "name": "Clinic 2", "assigned_admins": ["4", "5"]}

        result = runner.invoke(app, ["sites", "update", "clinic", "--name", "Clinic 2", "--admin", "4", "--admin", "5"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        mock_update.assert_called_once_with("tok", "clinic", {"name": "Clinic 2", "assigned_admins": ["4", "5"]})
        self.assertEqual(context.get_site("clinic")["name"], "Clinic 2")
        mock_persist.assert_called_once_with(context)

    @patch("crm_cli.sites.commands.api_update_site")
    @patch("crm_cli.sites.commands.load_token")
    def test_update_without_fields(self, mock_token, mock_update):
        mock_token.return_value = "tok"
        result = runner.invoke(app, ["sites", "update", "clinic"])
        self.assertEqual(result.exit_code, 1)
        mock_update.assert_not_called()


class TestAdminCommands(unittest.TestCase):

    @patch("crm_cli.permissions.commands.api_get_permissions")
    def test_permissions_list_filters_by_role(self, mock_get):
        mock_get.return_value = [
            {"role": "admin", "feature": "leads", "can_read": True, "can_write": True},
            {"role": "client", "feature": "leads", "can_read": True, "can_write": False},
        ]
        result = runner.invoke(app, ["permissions", "list", "--role", "client"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("client", result.stdout)
        self.assertNotIn("admin", result.stdout)

    @patch("crm_cli.permissions.commands.api_update_permission")
    @patch("crm_cli.permissions.commands.load_token")
    def test_permissions_set(self, mock_token, mock_update):
        mock_token.return_value = "tok"
        mock_update.return_value = True
        result = runner.invoke(app, ["permissions", "set", "client", "blogs", "--read"])
        self.assertEqual(result.exit_code, 0)
        mock_update.assert_called_once_with("tok", "client", "blogs", True, False)

    @patch("crm_cli.roles.commands.api_assign_role")
    @patch("crm_cli.roles.commands.load_token")
    def test_assign_without_session(self, mock_token, mock_assign):
        mock_token.return_value = None
        result = runner.invoke(app, ["roles", "assign", "5", "main", "client"])
        self.assertEqual(result.exit_code, 1)
        mock_assign.assert_not_called()

    @patch("crm_cli.roles.commands.api_get_assignments")
    @patch("crm_cli.roles.commands.open_wordpress_api")
    @patch("crm_cli.roles.commands.load_site_context")
    def test_site_users_show_crm_roles(self, mock_context, mock_open, mock_assignments):
        mock_context.return_value = SiteContext(SITES, "clinic")
        api = mock_open.return_value.__enter__.return_value
        api.get_users.return_value = [
            {"id": 5, "username": "ana", "roles": ["author"]},
            {"id": 6, "username": "rui", "roles": ["subscriber"]},
        ]
        mock_assignments.return_value = [{"wp_user_id": "5", "site_id": "clinic", "app_role": "seo_person"}]

        result = runner.invoke(app, ["roles", "users"])

        self.assertEqual(result.exit_code, 0, result.stdout)
        mock_assignments.assert_called_once_with("clinic")
        ana = next(line for line in result.stdout.splitlines() if "ana" in line)
        self.assertTrue(ana.rstrip().endswith("seo_person"))
        rui = next(line for line in result.stdout.splitlines() if "rui" in line)
        self.assertTrue(rui.rstrip().endswith("-"))

    @patch("crm_cli.permissions.commands.api_bulk_update_permissions")
    @patch("crm_cli.permissions.commands.load_token")
    def test_permissions_bulk_from_file(self, mock_token, mock_bulk):
        mock_token.return_value = "tok"
        mock_bulk.return_value = 2
        permissions = [
            {"role": "client", "feature": "blogs", "can_read": True, "can_write": False},
            {"role": "client", "feature": "leads", "can_read": True, "can_write": True},
        ]
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "matrix.json"
            path.write_text(json.dumps(permissions), encoding="utf-8")
            result = runner.invoke(app, ["permissions", "bulk", str(path)])

        self.assertEqual(result.exit_code, 0, result.stdout)
        self.assertIn("2 permission(s) updated", result.stdout)
        mock_bulk.assert_called_once_with("tok", permissions)

    @patch("crm_cli.permissions.commands.api_bulk_update_permissions")
    @patch("crm_cli.permissions.commands.load_token")
    def test_permissions_bulk_rejects_bad_entries(self, mock_token, mock_bulk):
        mock_token.return_value = "tok"
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "matrix.json"
            path.write_text(json.dumps([{"role": "client"}]), encoding="utf-8")
            result = runner.invoke(app, ["permissions", "bulk", str(path)])
        self.assertEqual(result.exit_code, 1)
        mock_bulk.assert_not_called()

    @patch("crm_cli.auth.commands.save_session")
    @patch("crm_cli.auth.commands.api_get_me")
    @patch("crm_cli.auth.commands.load_token")
    def test_whoami_refreshes_profile(self, mock_token, mock_me, mock_save):
        mock_token.return_value = "tok"
        mock_me.return_value = {"id": 1, "username": "root", "email": "root@crm.local", "role": "super_admin"}
        result = runner.invoke(app, ["auth", "whoami"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("root (id 1, role super_admin)", result.stdout)
        mock_save.assert_called_once_with("tok", mock_me.return_value)

    @patch("crm_cli.auth.commands.load_profile")
    @patch("crm_cli.auth.commands.api_get_me")
    @patch("crm_cli.auth.commands.load_token")
    def test_whoami_offline_uses_stored_profile(self, mock_token, mock_me, mock_profile):
        mock_token.return_value = "tok"
        mock_me.return_value = None
        mock_profile.return_value = {"id": 1, "username": "root", "role": "super_admin"}
        result = runner.invoke(app, ["auth", "whoami"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("stored profile", result.stdout)

    @patch("crm_cli.core.api.requests.get")
    def test_session_check_distinguishes_revocation(self, mock_get):
        mock_get.return_value = MagicMock(status_code=401)
        mock_get.return_value.json.return_value = {"error": "Session invalidated", "code": "SESSION_INVALIDATED"}
        self.assertEqual(api_check_session("tok"), "invalidated")

        mock_get.return_value.json.return_value = {"error": "Invalid or expired token"}
        self.assertEqual(api_check_session("tok"), "invalid")


class TestLocalStore(unittest.TestCase):
    """
    Session and site cache files, redirected to a temporary directory.
    """

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)
        for name, filename in [
            ("SESSION_FILE", "session.json"),
            ("SITES_FILE", "sites.json"),
            ("SITE_SESSIONS_FILE", "site_sessions.json"),
            ("WP_CONFIG_FILE", "wp_config.json"),
        ]:
            p = patch.object(session_store, name, self.dir / filename)
            p.start()
            self.addCleanup(p.stop)

    def test_backend_session_roundtrip(self):
        self.assertFalse(session_store.is_logged_in())
        session_store.save_session("tok", {"id": 1, "role": "super_admin"})
        self.assertEqual(session_store.load_token(), "tok")
        self.assertEqual(session_store.load_profile()["role"], "super_admin")
        session_store.clear_session()
        self.assertIsNone(session_store.load_token())

    def test_corrupt_file_counts_as_empty(self):
        (self.dir / "sites.json").write_text("{not json", encoding="utf-8")
        self.assertEqual(session_store.load_sites(), ([], None))

    def test_site_sessions_are_per_site(self):
        session_store.save_site_session("main", {"username": "a", "app_password": "x"})
        session_store.save_site_session("clinic", {"username": "b", "app_password": "y"})
        self.assertTrue(session_store.clear_site_session("main"))
        self.assertFalse(session_store.clear_site_session("main"))
        self.assertEqual(list(session_store.load_site_sessions()), ["clinic"])

    @patch("crm_cli.core.session.WP_APP_PASSWORD", "env-pw")
    @patch("crm_cli.core.session.WP_USERNAME", "env-user")
    def test_stored_global_credentials_win_over_environment(self):
        self.assertEqual(session_store.load_global_credentials(), {"username": "env-user", "password": "env-pw"})
        session_store.save_global_credentials("stored", "pw")
        session_store.save_legacy_site_url("legacy.example")

        self.assertEqual(session_store.load_global_credentials(), {"username": "stored", "password": "pw"})
        data = json.loads((self.dir / "wp_config.json").read_text(encoding="utf-8"))
        self.assertEqual(data["wp_site_url"], "legacy.example")


if __name__ == "__main__":
    unittest.main()
