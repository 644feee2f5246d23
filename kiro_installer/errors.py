class InstallerError(RuntimeError):
    pass


class DependencyMissing(InstallerError):
    pass


class MetadataFetchFailed(InstallerError):
    pass


class MetadataMalformed(InstallerError):
    pass


class PackageDownloadFailed(InstallerError):
    pass


class PackageExtractFailed(InstallerError):
    pass


class PackageLayoutInvalid(InstallerError):
    pass


class PermissionDenied(InstallerError):
    pass


class ElevationDeclined(PermissionDenied):
    pass


class InstallStepFailed(InstallerError):
    pass


def exception_detail(exc):
    text = str(exc).strip()
    if text:
        return f"{exc.__class__.__name__}: {text}"
    return exc.__class__.__name__
