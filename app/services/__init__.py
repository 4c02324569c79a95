# Services package: transcoding, object store and the multipart upload pipelines
