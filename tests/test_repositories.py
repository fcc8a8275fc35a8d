"""
Testes para os repositórios Redis
"""

from database.campaign_repo import CampaignRepository
from database.user_repo import UserDirectory


class TestUserDirectory:
    """Diretório de usuários e planos"""

    def test_list_known_users(self, fake_redis):
        users = UserDirectory(fake_redis)
        users.index_user("b")
        users.index_user("a")
        users.index_user("a")

        assert users.list_all_known_users() == ["a", "b"]

    def test_plan_code_normalization(self, fake_redis):
        users = UserDirectory(fake_redis)

        assert users.set_plan_code("a", " pro ") == "PRO"
        assert users.get_plan_code("a") == "PRO"

        fake_redis.set("user:b:plan", '"basico"')
        assert users.get_plan_code("b") == "BASICO"

        fake_redis.set("user:c:plan", '""')
        assert users.get_plan_code("c") == ""
        assert users.get_plan_code("missing") == ""

    def test_empty_plan_deletes_key(self, fake_redis):
        users = UserDirectory(fake_redis)
        users.set_plan_code("a", "PRO")

        assert users.set_plan_code("a", "") == ""
        assert fake_redis.get("user:a:plan") is None


class TestCampaignRepository:
    """Estruturas de campanha"""

    def test_move_to_sent_is_idempotent(self, fake_redis):
        repo = CampaignRepository(fake_redis)
        repo.add_pending("cp_1", ["a", "b", ""])

        repo.move_to_sent("cp_1", "a")
        repo.move_to_sent("cp_1", "a")

        assert repo.sent_members("cp_1") == ["a"]
        assert repo.pending_members("cp_1") == ["b"]
        assert repo.sent_count("cp_1") == 1
        assert repo.pending_count("cp_1") == 1

    def test_add_pending_ignores_empty(self, fake_redis):
        repo = CampaignRepository(fake_redis)
        assert repo.add_pending("cp_1", []) == 0

    def test_meta_roundtrip_and_garbage(self, fake_redis):
        repo = CampaignRepository(fake_redis)
        repo.save_meta("cp_1", {"id": "cp_1", "text": "Olá"})

        assert repo.get_meta("cp_1") == {"id": "cp_1", "text": "Olá"}

        fake_redis.set("campaign:cp_2:meta", "{broken")
        assert repo.get_meta("cp_2") is None
        assert repo.get_meta("cp_3") is None
