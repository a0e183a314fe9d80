from rest_framework import serializers

from .models import ImportJob


class ImportUploadSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        if not value.name.lower().endswith(".csv"):
            raise serializers.ValidationError("Only .csv files are accepted.")
        return value


class ImportJobSerializer(serializers.ModelSerializer):
    tenant_id = serializers.UUIDField(read_only=True)
    submitted_by = serializers.EmailField(source="submitted_by.email", read_only=True, default=None)

    class Meta:
        model = ImportJob
        fields = [
            "id",
            "tenant_id",
            "submitted_by",
            "original_name",
            "status",
            "chunk_size",
            "rows_committed",
            "chunks_committed",
            "imported_count",
            "skipped_count",
            "error",
            "created_at",
            "started_at",
            "completed_at",
        ]
        read_only_fields = fields
