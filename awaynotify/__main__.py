from awaynotify.main import main

raise SystemExit(main())
