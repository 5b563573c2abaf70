"""DRF viewsets: public catalog, admin moderation, image uploads and inventory links."""
import logging

from django.conf import settings
from django.http import FileResponse, Http404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser
from rest_framework.response import Response

from apps.catalog import curation, repository
from apps.catalog.exceptions import CatalogError, ValidationError
from apps.catalog.matching import find_near_matches, find_near_matches_admin
from apps.catalog.models import CatalogItem
from apps.catalog.params import AdminSearchParams, SearchParams
from apps.images.models import ImageAsset
from apps.images.services import get_approved_asset, moderate_and_store, release_asset
from apps.inventory.models import InventoryItem

from .serializers import (
    AdminPatchSerializer,
    BulkDeleteSerializer,
    CatalogItemSerializer,
    CatalogSubmissionSerializer,
    DescriptionSerializer,
    FlagSerializer,
    ImageRefSerializer,
    ImageUploadSerializer,
    InventoryItemSerializer,
    NearMatchQuerySerializer,
)

logger = logging.getLogger(__name__)


def _int_param(request, name: str) -> int:
    raw = request.query_params.get(name, "")
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)


def _release_if_replaced(previous, current=None):
    if previous and previous != current:
        release_asset(previous)


class CatalogViewSet(viewsets.ViewSet):
    """Contributor-facing catalog: search, create-or-get, near matches, image submission."""

    public_actions = {"list", "retrieve", "popular", "near_matches"}

    def get_permissions(self):
        if self.action in self.public_actions:
            return [permissions.AllowAny()]
        if self.action == "image" and self.request.method == "GET":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def _serialize(self, item, **context):
        return CatalogItemSerializer(item, context={"request": self.request, **context}).data

    def list(self, request):
        """GET /api/catalog/?q=&gearType=&brand=&limit=&offset="""
        params = SearchParams(
            query=request.query_params.get("q", ""),
            gear_type=request.query_params.get("gearType", ""),
            brand=request.query_params.get("brand", ""),
            limit=_int_param(request, "limit"),
            offset=_int_param(request, "offset"),
        )
        result = repository.search(params)
        return Response({
            "items": CatalogItemSerializer(
                result.items, many=True, context={"request": request}
            ).data,
            "totalCount": result.total_count,
            "query": result.query,
        })

    def retrieve(self, request, pk=None):
        return Response(self._serialize(repository.get_item(pk)))

    def create(self, request):
        """POST /api/catalog/: returns the existing item when the product is already known."""
        serializer = CatalogSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item, existing = repository.create_or_get(serializer.to_submission(), user=request.user)
        return Response(
            {"item": self._serialize(item), "existing": existing},
            status=status.HTTP_200_OK if existing else status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"])
    def popular(self, request):
        items = repository.get_popular(
            gear_type=request.query_params.get("gearType") or None,
            limit=_int_param(request, "limit"),
        )
        return Response({
            "items": CatalogItemSerializer(items, many=True, context={"request": request}).data,
        })

    @action(detail=False, methods=["post"], url_path="near-matches")
    def near_matches(self, request):
        serializer = NearMatchQuerySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        matches = find_near_matches(
            data["gearType"], data["brand"], data["model"], data["threshold"]
        )
        return Response({
            "matches": [
                {"item": self._serialize(m.item), "similarity": m.similarity}
                for m in matches
            ],
        })

    @action(detail=True, methods=["post"])
    def flag(self, request, pk=None):
        serializer = FlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = repository.flag_item(pk, serializer.validated_data["reason"])
        return Response(self._serialize(item))

    @action(detail=True, methods=["get", "post"])
    def image(self, request, pk=None):
        """
        GET  /api/catalog/{id}/image/: image bytes (approved only, unless staff)
        POST /api/catalog/{id}/image/ {"imageId": "uuid"}: submit a moderated image
        """
        if request.method == "GET":
            return self._serve_image(request, pk)

        serializer = ImageRefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        asset = get_approved_asset(serializer.validated_data["imageId"], owner=request.user)
        try:
            previous = curation.submit_user_image(pk, asset.pk, asset.content_type)
        except CatalogError:
            # The upload was made for this item; nothing else will reference it.
            release_asset(asset.pk)
            raise
        _release_if_replaced(previous, asset.pk)
        item = repository.get_item(pk)
        return Response(self._serialize(item, show_scanned_images=True))

    def _serve_image(self, request, pk):
        item = repository.get_item(pk)
        visible = {CatalogItem.ImageStatus.APPROVED}
        if request.user.is_staff:
            visible.add(CatalogItem.ImageStatus.SCANNED)
        if not item.has_image or item.image_status not in visible:
            raise Http404("No image")

        asset = ImageAsset.objects.filter(pk=item.image_asset_id).first()
        if asset is None or not asset.file:
            logger.warning(
                "Catalog item %s references missing image asset %s", item.pk, item.image_asset_id
            )
            raise Http404("No image")
        return FileResponse(
            asset.file.open("rb"), content_type=item.image_type or asset.content_type
        )


class AdminCatalogViewSet(viewsets.ViewSet):
    """Moderation endpoints; staff only."""

    permission_classes = [permissions.IsAdminUser]

    def _serialize(self, item):
        return CatalogItemSerializer(
            item, context={"request": self.request, "show_scanned_images": True}
        ).data

    def list(self, request):
        """GET /api/admin/catalog/?imageStatus=scanned|recently-curated|all&descriptionStatus=..."""
        params = AdminSearchParams(
            query=request.query_params.get("q", ""),
            gear_type=request.query_params.get("gearType", ""),
            brand=request.query_params.get("brand", ""),
            status=request.query_params.get("status", ""),
            image_status=request.query_params.get("imageStatus", ""),
            description_status=request.query_params.get("descriptionStatus", ""),
            limit=_int_param(request, "limit"),
            offset=_int_param(request, "offset"),
        )
        result = repository.admin_search(params)
        return Response({
            "items": CatalogItemSerializer(
                result.items, many=True,
                context={"request": request, "show_scanned_images": True},
            ).data,
            "totalCount": result.total_count,
            "query": result.query,
        })

    def retrieve(self, request, pk=None):
        return Response(self._serialize(repository.get_item(pk)))

    def partial_update(self, request, pk=None):
        serializer = AdminPatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = repository.admin_update(pk, serializer.to_patch(), request.user)
        return Response(self._serialize(item))

    def destroy(self, request, pk=None):
        image_ref = repository.delete_item(pk)
        _release_if_replaced(image_ref)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="near-matches")
    def near_matches(self, request):
        serializer = NearMatchQuerySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        matches = find_near_matches_admin(
            data["gearType"], data["brand"], data["model"], data["threshold"]
        )
        return Response({
            "matches": [
                {"item": self._serialize(m.item), "similarity": m.similarity}
                for m in matches
            ],
        })

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = repository.bulk_delete(serializer.validated_data["ids"])
        for image_ref in result.released_image_ids:
            release_asset(image_ref)
        return Response({
            "deletedIds": result.deleted_ids,
            "notFoundIds": result.not_found_ids,
            "failedIds": result.failed_ids,
        })

    @action(detail=True, methods=["put", "delete"])
    def image(self, request, pk=None):
        """
        PUT    /api/admin/catalog/{id}/image/ {"imageId": "uuid"}: replace, approved
        DELETE /api/admin/catalog/{id}/image/: clear
        """
        if request.method == "DELETE":
            previous = curation.clear_image(pk)
            _release_if_replaced(previous)
            return Response(self._serialize(repository.get_item(pk)))

        serializer = ImageRefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        asset = get_approved_asset(serializer.validated_data["imageId"])
        previous = curation.set_admin_image(pk, request.user, asset.pk, asset.content_type)
        _release_if_replaced(previous, asset.pk)
        return Response(self._serialize(repository.get_item(pk)))

    @action(detail=True, methods=["post"], url_path="image/approve")
    def approve_image(self, request, pk=None):
        curation.approve_image(pk, request.user)
        return Response(self._serialize(repository.get_item(pk)))

    @action(
        detail=True, methods=["put", "delete"], url_path="description", url_name="description"
    )
    def curate_description(self, request, pk=None):
        """
        PUT    /api/admin/catalog/{id}/description/ {"description": "..."}: set, approved
        DELETE /api/admin/catalog/{id}/description/: clear
        """
        if request.method == "DELETE":
            curation.clear_description(pk)
        else:
            serializer = DescriptionSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            curation.set_description(pk, request.user, serializer.validated_data["description"])
        return Response(self._serialize(repository.get_item(pk)))


class ImageViewSet(viewsets.ViewSet):
    """Image uploads; the returned ``imageId`` is what catalog image endpoints take."""

    parser_classes = [MultiPartParser]

    def create(self, request):
        """POST /api/images/ (multipart ``image``): moderate and store, 201 with the verdict."""
        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        upload = serializer.validated_data["image"]
        if upload.size > settings.CATALOG_IMAGE_MAX_BYTES:
            raise ValidationError(
                f"image exceeds {settings.CATALOG_IMAGE_MAX_BYTES} bytes", field="image"
            )

        result = moderate_and_store(request.user, upload.read(), upload.content_type)
        return Response(
            {
                "imageId": str(result.asset_id),
                "status": "approved" if result.approved else "rejected",
                "labels": result.labels,
            },
            status=status.HTTP_201_CREATED,
        )


class InventoryViewSet(viewsets.ReadOnlyModelViewSet):
    """The requesting pilot's inventory and its catalog links."""

    serializer_class = InventoryItemSerializer
    filterset_fields = ["category", "catalog_item"]

    def get_queryset(self):
        return InventoryItem.objects.filter(owner=self.request.user).order_by("-created_at")

    @action(detail=True, methods=["post"])
    def link(self, request, pk=None):
        """POST /api/inventory/{id}/link/: create-or-get the catalog entry and link it."""
        inventory_item = self.get_object()
        item, existing = repository.link_inventory_item(inventory_item, user=request.user)
        return Response({
            "inventoryItem": InventoryItemSerializer(inventory_item).data,
            "catalogItem": CatalogItemSerializer(item, context={"request": request}).data,
            "existing": existing,
        })
