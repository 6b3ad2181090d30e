from conftest import make_project

OID = "5d3c1b2a-7e6f-4a9b-8c0d-112233445566"


def _create(client, headers, locale, body, **params):
    return client.post(f"/api/admin/projects/{locale}", json=body, headers=headers, params=params)


class TestAuthRequired:
    def test_admin_routes_reject_missing_token(self, client):
        assert client.get("/api/admin/projects/tr").status_code == 401

    def test_admin_routes_reject_bad_token(self, client):
        response = client.get("/api/admin/projects/tr", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_invalid_locale_is_rejected(self, client, auth_headers):
        assert client.get("/api/admin/projects/de", headers=auth_headers).status_code == 422


class TestCreate:
    def test_round_trip_by_slug_and_original_id(self, client, auth_headers):
        created = _create(client, auth_headers, "tr", {"title": "Porselen Vazo", "technologies": ["Seramik"]})
        assert created.status_code == 201
        body = created.json()
        assert body["id"] == "porselen-vazo"
        assert body["status"] is True

        by_slug = client.get("/api/projects/tr/porselen-vazo").json()
        by_original = client.get(f"/api/projects/tr/{body['originalId']}").json()
        assert by_slug["_id"] == by_original["_id"]

    def test_turkish_record_needs_title(self, client, auth_headers):
        response = _create(client, auth_headers, "tr", {"id": "bos"})
        assert response.status_code == 400

    def test_english_defaults(self, client, auth_headers):
        tr = _create(client, auth_headers, "tr", {"title": "Vazo"}).json()
        en = _create(client, auth_headers, "en", {"originalId": tr["originalId"]}).json()
        assert en["id"] == f"en-{tr['originalId'][:8]}"
        assert en["status"] is False

    def test_seo_is_filled_from_title_and_description(self, client, auth_headers):
        body = _create(
            client, auth_headers, "tr",
            {"title": "Vazo", "description": "x" * 200, "seo": {"metaKeywords": "seramik"}},
        ).json()
        seo = body["seo"]
        assert seo["metaTitle"] == "Vazo"
        assert seo["ogTitle"] == "Vazo"
        assert seo["metaDescription"] == "x" * 155 + "..."
        assert seo["metaKeywords"] == "seramik"
        assert seo["ogImage"] == "/logo.webp"

    def test_same_original_id_twice_conflicts(self, client, auth_headers, db):
        tr = _create(client, auth_headers, "tr", {"title": "Vazo"}).json()
        first = _create(client, auth_headers, "en", {"id": "vase", "originalId": tr["originalId"]})
        second = _create(client, auth_headers, "en", {"id": "vase-b", "originalId": tr["originalId"]})
        assert first.status_code == 201
        assert second.status_code == 409
        assert db["projects"].count_documents({"locale": "en", "originalId": tr["originalId"]}) == 1

    def test_taken_slug_conflicts_with_suggestion(self, client, auth_headers):
        _create(client, auth_headers, "tr", {"title": "Vazo"})
        response = _create(client, auth_headers, "tr", {"title": "Vazo"})
        assert response.status_code == 409
        assert response.json()["suggestedSlug"] == "vazo1"

    def test_new_sibling_inherits_images(self, client, auth_headers):
        tr = _create(client, auth_headers, "tr", {"title": "Vazo", "images": ["/images/projects/a.jpg"]}).json()
        en = _create(client, auth_headers, "en", {"title": "Vase", "originalId": tr["originalId"]}).json()
        assert en["images"] == ["/images/projects/a.jpg"]

    def test_new_sibling_images_propagate_back(self, client, auth_headers, db):
        tr = _create(client, auth_headers, "tr", {"title": "Vazo", "images": ["/images/projects/a.jpg"]}).json()
        _create(client, auth_headers, "en", {
            "title": "Vase", "originalId": tr["originalId"], "images": ["/images/projects/b.jpg"],
        })
        assert db["projects"].find_one({"locale": "tr"})["images"] == ["/images/projects/b.jpg"]

    def test_create_sibling_placeholder(self, client, auth_headers, db):
        tr = _create(client, auth_headers, "tr", {"title": "Vazo"}, createSibling="true").json()
        en = db["projects"].find_one({"locale": "en", "originalId": tr["originalId"]})
        assert en is not None
        assert en["status"] is False


class TestUpdate:
    def test_images_propagate_to_sibling(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID, images=["/a.jpg"])
        make_project(db, "en", "vase-1", OID, images=["/a.jpg"])

        response = client.put(
            "/api/admin/projects/tr/vazo-1", json={"images": ["/b.jpg", "/c.jpg"]}, headers=auth_headers,
        )

        assert response.status_code == 200
        assert db["projects"].find_one({"locale": "en"})["images"] == ["/b.jpg", "/c.jpg"]

    def test_status_is_not_propagated(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID)
        make_project(db, "en", "vase-1", OID, status=False)
        client.put("/api/admin/projects/tr/vazo-1", json={"status": False}, headers=auth_headers)
        client.put("/api/admin/projects/en/vase-1", json={"status": True}, headers=auth_headers)
        assert db["projects"].find_one({"locale": "tr"})["status"] is False
        assert db["projects"].find_one({"locale": "en"})["status"] is True

    def test_original_id_in_payload_is_ignored(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID)
        response = client.put(
            "/api/admin/projects/tr/vazo-1",
            json={"title": "Yeni", "originalId": "f" * 8 + "-0000-4000-8000-" + "0" * 12},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["originalId"] == OID
        assert response.json()["title"] == "Yeni"

    def test_update_by_original_id(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID)
        response = client.put(f"/api/admin/projects/tr/{OID}", json={"title": "Yeni"}, headers=auth_headers)
        assert response.status_code == 200
        assert db["projects"].find_one({"locale": "tr"})["title"] == "Yeni"

    def test_slug_change_to_taken_slug_conflicts(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID)
        make_project(db, "tr", "kase", "other")
        response = client.put("/api/admin/projects/tr/vazo-1", json={"id": "kase"}, headers=auth_headers)
        assert response.status_code == 409

    def test_missing_seo_fields_are_filled(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID, description="Kısa açıklama")
        body = client.put("/api/admin/projects/tr/vazo-1", json={"title": "Vazo"}, headers=auth_headers).json()
        assert body["seo"]["metaTitle"] == "Vazo"
        assert body["seo"]["metaDescription"] == "Kısa açıklama"

    def test_unknown_project_is_404(self, client, auth_headers):
        response = client.put("/api/admin/projects/tr/nope", json={"title": "x"}, headers=auth_headers)
        assert response.status_code == 404


class TestDelete:
    def test_linked_delete_removes_both_records_and_files(self, client, auth_headers, db, upload_root):
        image_dir = upload_root / "images" / "projects"
        image_dir.mkdir(parents=True)
        (image_dir / "a.jpg").write_bytes(b"a")
        make_project(db, "tr", "vazo-1", OID, images=["/images/projects/a.jpg"])
        make_project(db, "en", "vase-1", OID, images=["/images/projects/a.jpg", "/images/projects/gone.jpg"])

        response = client.delete("/api/admin/projects/en/vase-1", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["siblingFound"] is True
        assert body["images"]["deleted"] == ["a.jpg"]
        assert body["images"]["errors"] == ["gone.jpg (file not found)"]
        assert db["projects"].count_documents({"originalId": OID}) == 0
        assert not (image_dir / "a.jpg").exists()

    def test_image_shared_with_another_project_survives(self, client, auth_headers, db, upload_root):
        image_dir = upload_root / "images" / "projects"
        image_dir.mkdir(parents=True)
        (image_dir / "shared.jpg").write_bytes(b"s")
        make_project(db, "tr", "vazo-1", OID, images=["/images/projects/shared.jpg"])
        make_project(db, "tr", "kase-1", "other-oid", images=["/images/projects/shared.jpg"])

        response = client.delete("/api/admin/projects/tr/vazo-1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["images"] == {"deleted": [], "errors": []}
        assert (image_dir / "shared.jpg").exists()

    def test_orphan_delete_succeeds(self, client, auth_headers, db):
        make_project(db, "tr", "vazo-1", OID)
        response = client.delete(f"/api/admin/projects/tr/{OID}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["siblingFound"] is False
        assert db["projects"].count_documents({}) == 0

    def test_unknown_project_is_404(self, client, auth_headers):
        assert client.delete("/api/admin/projects/tr/nope", headers=auth_headers).status_code == 404


class TestAdminListing:
    def test_missing_order_is_backfilled(self, client, auth_headers, db):
        make_project(db, "tr", "a", "oid-a", order=None)
        make_project(db, "tr", "b", "oid-b", order=None)
        listed = client.get("/api/admin/projects/tr", headers=auth_headers).json()
        assert sorted(p["order"] for p in listed) == [0, 1]

    def test_reorder(self, client, auth_headers, db):
        make_project(db, "tr", "a", "oid-a", order=0)
        make_project(db, "tr", "b", "oid-b", order=1)
        response = client.post(
            "/api/admin/projects/order",
            json={"locale": "tr", "orders": [{"id": "a", "order": 1}, {"id": "b", "order": 0}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        listed = client.get("/api/admin/projects/tr", headers=auth_headers).json()
        assert [p["id"] for p in listed] == ["b", "a"]

    def test_slug_check(self, client, auth_headers, db):
        make_project(db, "tr", "vazo", OID)
        make_project(db, "tr", "vazo1", "other")
        taken = client.get(
            "/api/admin/projects/slug-check", params={"slug": "vazo", "locale": "tr"}, headers=auth_headers,
        ).json()
        own = client.get(
            "/api/admin/projects/slug-check",
            params={"slug": "vazo", "locale": "tr", "originalId": OID},
            headers=auth_headers,
        ).json()
        assert taken == {"isAvailable": False, "suggestedSlug": "vazo2"}
        assert own["isAvailable"] is True


class TestPublic:
    def test_listing_only_shows_published_and_paginates(self, client, db):
        for i in range(12):
            make_project(db, "tr", f"p{i}", f"oid-{i}", order=i, status=i != 5)
        page_one = client.get("/api/projects/tr").json()
        page_two = client.get("/api/projects/tr", params={"page": 2}).json()
        assert page_one["totalCount"] == 11
        assert page_one["totalPages"] == 2
        assert len(page_one["list"]) == 9
        assert [p["id"] for p in page_two["list"]] == ["p10", "p11"]

    def test_unpublished_detail_is_404(self, client, db):
        make_project(db, "en", "vase-1", OID, status=False)
        assert client.get("/api/projects/en/vase-1").status_code == 404

    def test_stale_locale_url_resolves_through_sibling(self, client, db):
        make_project(db, "tr", "vazo-1", OID)
        make_project(db, "en", "vase-1", OID)
        response = client.get("/api/projects/en/vazo-1")
        assert response.status_code == 200
        assert response.json()["id"] == "vase-1"

    def test_by_original_id(self, client, db):
        make_project(db, "en", "vase-1", OID)
        assert client.get(f"/api/projects/en/by-original-id/{OID}").json()["id"] == "vase-1"
        assert client.get(f"/api/projects/tr/by-original-id/{OID}").status_code == 404

    def test_language_switch_to_unpublished_sibling_goes_home(self, client, db):
        make_project(db, "tr", "vazo-1", OID)
        make_project(db, "en", "vase-1", OID, status=False)
        body = client.get(
            "/api/language-switch", params={"currentLocale": "tr", "projectKey": "vazo-1"},
        ).json()
        assert body == {"href": "/en", "exists": False, "target_id": None}

    def test_language_switch_to_published_sibling(self, client, db):
        make_project(db, "tr", "vazo-1", OID)
        make_project(db, "en", "vase-1", OID)
        body = client.get(
            "/api/language-switch", params={"currentLocale": "tr", "projectKey": "vazo-1"},
        ).json()
        assert body["href"] == "/en/projects/vase-1"

    def test_metadata(self, client, db):
        make_project(
            db, "tr", "vazo-1", OID, title="Vazo", technologies=["Seramik", "Sır"],
            seo={"ogImage": "/images/projects/og.jpg"},
        )
        make_project(db, "en", "vase-1", OID)
        body = client.get("/api/projects/tr/vazo-1/metadata").json()
        assert body["title"] == "Portfolio | Vazo"
        assert body["keywords"] == "Seramik, Sır"
        assert body["canonical"] == "http://localhost:3000/tr/projects/vazo-1"
        assert body["alternates"]["en"] == "http://localhost:3000/en/projects/vase-1"
        assert body["open_graph"]["images"][0]["url"] == "http://localhost:3000/images/projects/og.jpg"
